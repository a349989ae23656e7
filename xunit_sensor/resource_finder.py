"""Lookup of report paths against the project's source files."""

import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class ResourceFinder(Protocol):
    """Maps a file-system style path to a project resource key."""

    def find(self, path: str) -> Optional[str]:
        ...


class FileSystemResourceFinder:
    """Resolves paths to files below a base directory.

    The resource key is the base-dir-relative POSIX path. When a source file
    set is given, only those files are resolvable.
    """

    def __init__(self, base_dir: Union[str, Path], source_files: Optional[Iterable[Union[str, Path]]] = None):
        self.base_dir = Path(base_dir).resolve()
        self.source_keys = None
        if source_files is not None:
            self.source_keys = {key for key in map(self._key_for, source_files) if key is not None}

    def find(self, path: str) -> Optional[str]:
        if not path:
            return None
        key = self._key_for(path)
        if key is None:
            logger.debug(f"Path '{path}' is outside of {self.base_dir}")
            return None
        if self.source_keys is not None:
            return key if key in self.source_keys else None
        return key if (self.base_dir / key).is_file() else None

    def _key_for(self, path: Union[str, Path]) -> Optional[str]:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.base_dir / candidate
        try:
            resolved = candidate.resolve()
            return resolved.relative_to(self.base_dir).as_posix()
        except ValueError:
            # outside the project
            return None

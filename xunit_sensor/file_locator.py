"""Discovery of report files and C++ test sources below a base directory."""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Union

logger = logging.getLogger(__name__)

DEFAULT_REPORT_PATH = "xunit-reports/xunit-result-*.xml"

DEFAULT_SOURCE_PATTERNS = ["**/*.cpp", "**/*.cc", "**/*.cxx", "**/*.h", "**/*.hpp", "**/*.hh"]

# Default directories to ignore while looking for sources
DEFAULT_IGNORE_DIRS = {
    "__pycache__",
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "build",
    "cmake-build-debug",
    "cmake-build-release",
    "dist",
    ".venv",
    "venv",
    "xunit-reports",
}


def find_reports(base_dir: Union[str, Path], pattern: str = DEFAULT_REPORT_PATH) -> list[Path]:
    """Report files matching a glob, relative to base_dir unless absolute."""
    base = Path(base_dir)
    pattern = pattern or DEFAULT_REPORT_PATH
    if os.path.isabs(pattern):
        anchor = Path(pattern).anchor
        reports = Path(anchor).glob(str(Path(pattern).relative_to(anchor)))
    else:
        reports = base.glob(pattern)
    found = sorted(p for p in reports if p.is_file())
    logger.debug(f"Found {len(found)} reports for pattern '{pattern}' in {base}")
    return found


def find_source_files(base_dir: Union[str, Path], patterns: Iterable[str] = DEFAULT_SOURCE_PATTERNS,
                      ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS) -> list[Path]:
    """Source files below base_dir matching any of the glob patterns."""
    base = Path(base_dir)
    patterns = list(patterns)
    ignore_dirs = set(ignore_dirs)
    found = []
    for root, dirs, files in os.walk(base):
        dirs[:] = sorted(d for d in dirs if d not in ignore_dirs and not d.startswith('.'))
        for name in sorted(files):
            path = Path(root) / name
            relative = path.relative_to(base).as_posix()
            if any(_matches_pattern(relative, pattern) for pattern in patterns):
                found.append(path)
    logger.debug(f"Found {len(found)} source files in {base}")
    return found


def _matches_pattern(relative_path: str, pattern: str) -> bool:
    """Glob match where a leading '**/' also matches files at the top level."""
    if fnmatch.fnmatch(relative_path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(relative_path, pattern[3:])
    return False

"""
Class-name lookup tables built from scanned test sources.

Two tables map a simple class name to the file it lives in:

- decl_table: files declaring the class
- impl_table: files defining member functions of the class

Both are last-write-wins: when a name occurs in several files, the file
scanned last is kept.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Protocol, Union

from .models import EntityKind, ScannedEntity

logger = logging.getLogger(__name__)

# zero or more 'ns::' qualifiers, then 'Class::member:line'
CLASS_NAME_PATTERN = re.compile(r"(?:\w*::)*?(\w+?)::\w+?:\d+")
QUALIFIER_SEPARATORS = re.compile(r"::|\.")


class SourceScanner(Protocol):
    def scan(self, path: Union[str, Path]) -> list[ScannedEntity]:
        ...


def match_class_name(qualified_function_key: str) -> Optional[str]:
    """Extract the enclosing class from a 'ns::Class::member:line' key.

    >>> match_class_name("Foo::Bar::baz:42")
    'Bar'
    >>> match_class_name("baz:42") is None
    True
    """
    match = CLASS_NAME_PATTERN.fullmatch(qualified_function_key)
    return match.group(1) if match else None


@dataclass(frozen=True)
class SourceIndex:
    """Immutable class-name -> file path lookup tables."""
    decl_table: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    impl_table: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def lookup_file_path(self, classname: str) -> str:
        """Best file path for a reported classname.

        Implementation files win over declaring files. A qualified name that
        is in neither table is retried with its last segment. When nothing
        matches the classname itself is returned so it can still be tried as
        a path.
        """
        for key in _candidate_keys(classname):
            path = self.impl_table.get(key)
            if path is None:
                path = self.decl_table.get(key)
            if path is not None:
                return path
        return classname

    def to_dict(self) -> dict:
        return {
            "decl_table": dict(sorted(self.decl_table.items())),
            "impl_table": dict(sorted(self.impl_table.items())),
        }


class SourceIndexBuilder:
    """Accumulates scanner results and freezes them into a SourceIndex."""

    def __init__(self, scanner: Optional[SourceScanner] = None, restrict_to_declared: bool = False):
        """
        Args:
            scanner: Object with a ``scan(path)`` method, required by add_file()
            restrict_to_declared: Drop impl_table entries for classes that are
                                  not in decl_table. Off by default, so classes
                                  whose declaration lives outside the scanned
                                  files still resolve through their definitions.
        """
        self.scanner = scanner
        self.restrict_to_declared = restrict_to_declared
        self._decl_table: dict[str, str] = {}
        self._impl_table: dict[str, str] = {}

    def add_file(self, path: Union[str, Path]) -> "SourceIndexBuilder":
        if self.scanner is None:
            raise ValueError("add_file() needs a scanner")
        return self.add_entities(path, self.scanner.scan(path))

    def add_entities(self, path: Union[str, Path], entities: Iterable[ScannedEntity]) -> "SourceIndexBuilder":
        file_path = str(path)
        for entity in entities:
            if entity.kind == EntityKind.CLASS:
                self._decl_table[entity.name] = file_path
            elif entity.kind == EntityKind.FUNCTION:
                class_name = match_class_name(entity.key)
                if class_name is not None:
                    self._impl_table[class_name] = file_path
            else:
                raise ValueError(f"Unknown entity kind: {entity.kind}")
        return self

    def build(self) -> SourceIndex:
        impl_table = self._filter_impl_table(self._impl_table, self._decl_table.keys())
        logger.info(f"Built lookup tables: {len(self._decl_table)} declared classes, "
                    f"{len(impl_table)} implemented classes")
        return SourceIndex(
            decl_table=MappingProxyType(dict(self._decl_table)),
            impl_table=MappingProxyType(dict(impl_table)),
        )

    def _filter_impl_table(self, impl_table: dict[str, str], declared: Iterable[str]) -> dict[str, str]:
        if not self.restrict_to_declared:
            return impl_table
        declared = set(declared)
        return {name: path for name, path in impl_table.items() if name in declared}


def build_source_index(files: Iterable[Union[str, Path]], scanner: SourceScanner,
                       restrict_to_declared: bool = False) -> SourceIndex:
    """Scan all files once and return the frozen index."""
    builder = SourceIndexBuilder(scanner, restrict_to_declared=restrict_to_declared)
    for path in files:
        builder.add_file(path)
    return builder.build()


def _candidate_keys(classname: str) -> list[str]:
    keys = [classname]
    last = QUALIFIER_SEPARATORS.split(classname)[-1]
    if last and last != classname:
        keys.append(last)
    return keys

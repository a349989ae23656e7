"""
C++ source scanner built on tree-sitter.

Reports the top-level class declarations and function definitions of a file
as ScannedEntity values. Object-like macros (configured defines, #defines in
the file itself and in its directly included local headers) are expanded
before parsing so that export macros such as ``class API_EXPORT Widget`` do
not break the parse.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from tree_sitter_language_pack import get_parser

from .models import EntityKind, ScannedEntity

logger = logging.getLogger(__name__)

# Nodes whose children are scanned as if they were top level
CONTAINER_TYPES = {
    "translation_unit",
    "declaration_list",
    "template_declaration",
    "preproc_if",
    "preproc_ifdef",
    "preproc_else",
    "preproc_elif",
    "preproc_elifdef",
}
CLASS_TYPES = {"class_specifier", "struct_specifier"}
NAME_TYPES = {
    "identifier",
    "qualified_identifier",
    "field_identifier",
    "destructor_name",
    "operator_name",
    "template_function",
    "operator_cast",
}

DEFINE_PATTERN = re.compile(r"^[ \t]*#[ \t]*define[ \t]+(\w+)(?:[ \t]+(.*?))?[ \t]*$", re.MULTILINE)
INCLUDE_PATTERN = re.compile(r'^[ \t]*#[ \t]*include[ \t]*"([^"]+)"', re.MULTILINE)
TEMPLATE_ARGS_PATTERN = re.compile(r"<[^<>]*>")


@dataclass(frozen=True)
class ScannerConfig:
    """Preprocessor-related settings for the scanner."""
    base_dir: str = "."
    defines: list[str] = field(default_factory=list)
    include_directories: list[str] = field(default_factory=list)
    charset: str = "utf-8"


class CxxScanner:
    """Scans C++ files for top-level classes and function definitions."""

    def __init__(self, config: Optional[ScannerConfig] = None):
        self.config = config or ScannerConfig()
        self.parser = get_parser("cpp")
        self._defines = parse_defines(self.config.defines)

    def scan(self, path: Union[str, Path]) -> list[ScannedEntity]:
        path = Path(path)
        source = self._read(path)
        if source is None:
            return []
        source = self._expand_macros(path, source)
        tree = self.parser.parse(source.encode(self.config.charset, errors="replace"))
        entities: list[ScannedEntity] = []
        self._collect(tree.root_node, entities)
        logger.debug(f"Scanned {path}: {len(entities)} top-level entities")
        return entities

    def _collect(self, node, entities: list[ScannedEntity]):
        for child in node.named_children:
            kind = child.type
            if kind in CONTAINER_TYPES:
                self._collect(child, entities)
            elif kind in ("namespace_definition", "linkage_specification"):
                body = child.child_by_field_name("body")
                if body is not None:
                    if body.type == "declaration_list":
                        self._collect(body, entities)
                    else:
                        self._collect_single(body, entities)
            else:
                self._collect_single(child, entities)

    def _collect_single(self, node, entities: list[ScannedEntity]):
        if node.type in CLASS_TYPES:
            entity = _class_entity(node)
            if entity is not None:
                entities.append(entity)
        elif node.type == "declaration":
            # e.g. 'class Widget {...} widget;'
            spec = node.child_by_field_name("type")
            if spec is not None and spec.type in CLASS_TYPES:
                entity = _class_entity(spec)
                if entity is not None:
                    entities.append(entity)
        elif node.type == "function_definition":
            entity = _function_entity(node)
            if entity is not None:
                entities.append(entity)

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding=self.config.charset, errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read source file {path}: {e}")
            return None

    def _expand_macros(self, path: Path, source: str) -> str:
        macros = dict(self._defines)
        for header in self._local_headers(path, source):
            text = self._read(header)
            if text:
                macros.update(find_defines(text))
        macros.update(find_defines(source))
        macros = {name: value for name, value in macros.items() if name != value}
        if not macros:
            return source

        pattern = re.compile(r"\b(" + "|".join(re.escape(name) for name in macros) + r")\b")
        lines = []
        for line in source.splitlines(keepends=True):
            if line.lstrip().startswith("#"):
                lines.append(line)
            else:
                lines.append(pattern.sub(lambda m: macros[m.group(1)], line))
        return "".join(lines)

    def _local_headers(self, path: Path, source: str) -> list[Path]:
        search_dirs = [path.parent] + [
            Path(d) if os.path.isabs(d) else Path(self.config.base_dir) / d
            for d in self.config.include_directories
        ]
        headers = []
        for include in INCLUDE_PATTERN.findall(source):
            for directory in search_dirs:
                candidate = directory / include
                if candidate.is_file():
                    headers.append(candidate)
                    break
            else:
                logger.debug(f"Include '{include}' of {path} not found")
        return headers


def parse_defines(lines: list[str]) -> dict[str, str]:
    """Parse 'NAME VALUE' / 'NAME=VALUE' / 'NAME' define specifications."""
    defines = {}
    for line in lines:
        line = line.strip()
        if not line:
            continue
        if "=" in line.split(None, 1)[0]:
            name, _, value = line.partition("=")
        else:
            name, _, value = line.partition(" ")
        name = name.strip()
        # function-like macros are not expanded
        if name and "(" not in name:
            defines[name] = value.strip()
    return defines


def find_defines(source: str) -> dict[str, str]:
    """Object-like #define directives found in a source text."""
    return {m.group(1): (m.group(2) or "") for m in DEFINE_PATTERN.finditer(source)}


def _class_entity(node) -> Optional[ScannedEntity]:
    name_node = node.child_by_field_name("name")
    # forward declarations carry no body
    if name_node is None or node.child_by_field_name("body") is None:
        return None
    name = _normalize(name_node.text.decode("utf-8", errors="replace"))
    return ScannedEntity(
        kind=EntityKind.CLASS,
        name=name.rsplit("::", 1)[-1],
        line=node.start_point[0] + 1,
    )


def _function_entity(node) -> Optional[ScannedEntity]:
    declarator = node.child_by_field_name("declarator")
    while declarator is not None and declarator.type not in NAME_TYPES:
        inner = declarator.child_by_field_name("declarator")
        if inner is None:
            named = declarator.named_children
            inner = named[-1] if named else None
        declarator = inner
    if declarator is None:
        return None
    name = _normalize(declarator.text.decode("utf-8", errors="replace"))
    line = node.start_point[0] + 1
    return ScannedEntity(
        kind=EntityKind.FUNCTION,
        name=name,
        key=f"{name}:{line}",
        line=line,
    )


def _normalize(name: str) -> str:
    name = re.sub(r"\s+", "", name)
    previous = None
    while previous != name:
        previous = name
        name = TEMPLATE_ARGS_PATTERN.sub("", name)
    return name

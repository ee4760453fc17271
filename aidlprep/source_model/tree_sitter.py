"""Tree-sitter powered Java source model."""

from __future__ import annotations

import os
import re
import zipfile
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import tree_sitter_java
from tree_sitter import Language, Node, Parser

from .base import SourceModel
from .classpath import discover_source_roots
from ..config import AidlPrepConfig, load_config
from ..errors import SourceModelError
from ..logging import get_logger
from ..models import CompilationUnit, PackageFragment, SourceRoot, TypeDeclaration

JAVA_LANGUAGE = Language(tree_sitter_java.language())

_TYPE_DECLARATIONS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "record",
    "annotation_type_declaration": "annotation",
}

_ANNOTATION_PATTERN = re.compile(r"@[\w.]+(?:\s*\([^()]*\))?")
_TYPE_ARGUMENTS_PATTERN = re.compile(r"<[^<>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass
class _ParsedUnit:
    package: str
    imports: List[str] = field(default_factory=list)
    on_demand: List[str] = field(default_factory=list)
    types: List[TypeDeclaration] = field(default_factory=list)
    error_line: Optional[int] = None


@dataclass
class _TypeContext:
    declaration: TypeDeclaration
    unit: _ParsedUnit
    enclosing: Tuple[str, ...]
    header_error_line: Optional[int] = None


class TreeSitterSourceModel(SourceModel):
    """Parses a project's Java sources with tree-sitter and resolves supertypes by name."""

    def __init__(
        self,
        project_root: Path,
        config: AidlPrepConfig | None = None,
        roots: Optional[Sequence[SourceRoot]] = None,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.config = config or load_config(self.project_root)
        self._roots = (
            list(roots) if roots is not None else discover_source_roots(self.project_root, self.config)
        )
        self._parser = Parser(JAVA_LANGUAGE)
        self._library_parcelables = set(self.config.known_parcelables)
        self._known_types = {self.config.marker_interface} | self._library_parcelables
        self._units: Dict[Tuple[Path, Optional[str]], _ParsedUnit] = {}
        self._contexts: Dict[int, _TypeContext] = {}
        self._index: Dict[str, _TypeContext] = {}
        self._index_built = False
        self._closures: Dict[int, Tuple[str, ...]] = {}
        self._archives: Dict[Path, List[str]] = {}
        self.logger = get_logger("source_model")

    # ------------------------------------------------------------------
    # SourceModel API

    def source_roots(self) -> Sequence[SourceRoot]:
        return list(self._roots)

    def packages(self, root: SourceRoot) -> Sequence[PackageFragment]:
        if root.is_archive:
            return self._archive_packages(root)
        if not root.path.is_dir():
            self.logger.warning("Source root %s does not exist, skipping", root.path)
            return []

        nested = self._nested_roots(root)
        fragments: List[PackageFragment] = []
        for dirpath, dirnames, filenames in os.walk(root.path):
            current = Path(dirpath)
            relative = current.relative_to(root.path)
            # Nested roots own their subtree; excluded folders are not part of this root.
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not name.startswith(".")
                and current / name not in nested
                and not _excluded_directory(root, (relative / name).as_posix())
            )
            if not any(
                name.endswith(".java") and _accepts(root, (relative / name).as_posix())
                for name in filenames
            ):
                continue
            name = ".".join(relative.parts)
            fragments.append(PackageFragment(name=name, path=current, root=root))
        return fragments

    def compilation_units(self, package: PackageFragment) -> Sequence[CompilationUnit]:
        root = package.root
        if root.is_archive:
            prefix = package.name.replace(".", "/")
            units: List[CompilationUnit] = []
            for entry in self._archive_entries(root):
                directory = entry.rpartition("/")[0]
                if directory != prefix:
                    continue
                units.append(
                    CompilationUnit(
                        path=root.path / entry,
                        package=package.name,
                        root=root,
                        entry=entry,
                    )
                )
            return units

        relative = package.path.relative_to(root.path)
        try:
            names = sorted(
                child.name
                for child in package.path.iterdir()
                if child.suffix == ".java"
                and child.is_file()
                and _accepts(root, (relative / child.name).as_posix())
            )
        except OSError as exc:
            raise SourceModelError(f"Cannot list package: {exc}", path=package.path) from exc
        return [
            CompilationUnit(path=package.path / name, package=package.name, root=root)
            for name in names
        ]

    def types(self, unit: CompilationUnit) -> Sequence[TypeDeclaration]:
        parsed = self._load_unit(unit)
        if parsed.error_line is not None and self.config.strict:
            raise SourceModelError("Syntax error in compilation unit", path=unit.path, line=parsed.error_line)
        return list(parsed.types)

    def super_interfaces(self, declaration: TypeDeclaration) -> Sequence[str]:
        self._ensure_index()
        context = self._contexts.get(id(declaration)) or self._index.get(declaration.fqname)
        if context is None:
            raise SourceModelError(f"Unknown type {declaration.fqname}")
        return list(self._closure(context, ()))

    def _nested_roots(self, root: SourceRoot) -> Set[Path]:
        nested: Set[Path] = set()
        for other in self._roots:
            if other.is_archive or other.path == root.path:
                continue
            try:
                other.path.relative_to(root.path)
            except ValueError:
                continue
            nested.add(other.path)
        return nested

    # ------------------------------------------------------------------
    # Hierarchy resolution

    def _closure(self, context: _TypeContext, chain: Tuple[str, ...]) -> Tuple[str, ...]:
        declaration = context.declaration
        cached = self._closures.get(id(declaration))
        if cached is not None:
            return cached

        unit_path = declaration.unit.path if declaration.unit else None
        if declaration.fqname in chain:
            cycle = " -> ".join(chain + (declaration.fqname,))
            raise SourceModelError(
                f"Cyclic inheritance: {cycle}", path=unit_path, line=declaration.line
            )
        if context.header_error_line is not None:
            raise SourceModelError(
                f"Cannot resolve supertypes of {declaration.fqname}",
                path=unit_path,
                line=context.header_error_line,
            )

        chain = chain + (declaration.fqname,)
        collected: Dict[str, None] = {}
        for raw in declaration.interfaces:
            resolved = self._resolve_name(raw, context)
            collected.setdefault(resolved)
            self._inherit(resolved, chain, collected)
        if declaration.superclass:
            resolved = self._resolve_name(declaration.superclass, context)
            self._inherit(resolved, chain, collected)

        closure = tuple(collected)
        self._closures[id(declaration)] = closure
        return closure

    def _inherit(self, resolved: str, chain: Tuple[str, ...], collected: Dict[str, None]) -> None:
        target = self._index.get(resolved)
        if target is not None:
            for name in self._closure(target, chain):
                collected.setdefault(name)
        elif resolved in self._library_parcelables:
            # Binary library type with no source: only its marker is known.
            collected.setdefault(self.config.marker_interface)

    def _resolve_name(self, raw: str, context: _TypeContext) -> str:
        head, _, rest = raw.partition(".")
        resolved_head = self._resolve_simple(head, context)
        if resolved_head is not None:
            return f"{resolved_head}.{rest}" if rest else resolved_head
        if rest:
            return raw
        package = context.unit.package
        return f"{package}.{raw}" if package else raw

    def _resolve_simple(self, name: str, context: _TypeContext) -> Optional[str]:
        for enclosing in context.enclosing:
            if enclosing.rpartition(".")[2] == name:
                return enclosing
            candidate = f"{enclosing}.{name}"
            if candidate in self._index:
                return candidate

        unit = context.unit
        for imported in unit.imports:
            if imported.rpartition(".")[2] == name:
                return imported

        same_package = f"{unit.package}.{name}" if unit.package else name
        if same_package in self._index:
            return same_package

        for container in unit.on_demand:
            candidate = f"{container}.{name}"
            if candidate in self._index or candidate in self._known_types:
                return candidate

        lang = f"java.lang.{name}"
        if lang in self._index:
            return lang
        return None

    def _ensure_index(self) -> None:
        if self._index_built:
            return
        for root in self._roots:
            for package in self.packages(root):
                for unit in self.compilation_units(package):
                    parsed = self._load_unit(unit)
                    for declaration in _walk(parsed.types):
                        context = self._contexts[id(declaration)]
                        self._index.setdefault(declaration.fqname, context)
        self._index_built = True
        self.logger.debug("Indexed %d types for %s", len(self._index), self.project_root)

    # ------------------------------------------------------------------
    # Parsing

    def _load_unit(self, unit: CompilationUnit) -> _ParsedUnit:
        key = (unit.path, unit.entry)
        parsed = self._units.get(key)
        if parsed is not None:
            return parsed

        source = self._read(unit)
        tree = self._parser.parse(source)
        root_node = tree.root_node
        parsed = _ParsedUnit(package=unit.package)
        if root_node.has_error:
            parsed.error_line = _first_error_line(root_node)

        for child in root_node.named_children:
            if child.type == "package_declaration":
                name = _qualified_name(child, source)
                if name:
                    parsed.package = name
            elif child.type == "import_declaration":
                if any(part.type == "static" for part in child.children):
                    continue
                name = _qualified_name(child, source)
                if not name:
                    continue
                if any(part.type == "asterisk" for part in child.children):
                    parsed.on_demand.append(name)
                else:
                    parsed.imports.append(name)

        for child in root_node.named_children:
            if child.type in _TYPE_DECLARATIONS:
                declaration = self._declaration(child, source, parsed, unit, None, ())
                if declaration is not None:
                    parsed.types.append(declaration)

        self._units[key] = parsed
        return parsed

    def _declaration(
        self,
        node: Node,
        source: bytes,
        parsed: _ParsedUnit,
        unit: CompilationUnit,
        outer: Optional[str],
        enclosing: Tuple[str, ...],
    ) -> Optional[TypeDeclaration]:
        name_node = node.child_by_field_name("name")
        line = node.start_point[0] + 1
        if name_node is None:
            self.logger.warning("%s:%d: skipping unnamed %s", unit.path, line, node.type)
            return None

        name = _node_text(name_node, source)
        if outer:
            fqname = f"{outer}.{name}"
        elif parsed.package:
            fqname = f"{parsed.package}.{name}"
        else:
            fqname = name

        superclass, interfaces = _supertypes(node, source)
        declaration = TypeDeclaration(
            fqname=fqname,
            name=name,
            kind=_TYPE_DECLARATIONS[node.type],
            package=parsed.package,
            superclass=superclass,
            interfaces=interfaces,
            unit=unit,
            line=line,
        )
        context = _TypeContext(
            declaration=declaration,
            unit=parsed,
            enclosing=enclosing,
            header_error_line=_header_error_line(node),
        )
        self._contexts[id(declaration)] = context

        for member in _member_declarations(node.child_by_field_name("body")):
            nested = self._declaration(member, source, parsed, unit, fqname, (fqname,) + enclosing)
            if nested is not None:
                declaration.nested_types.append(nested)
        return declaration

    def _read(self, unit: CompilationUnit) -> bytes:
        if unit.entry is None:
            try:
                return unit.path.read_bytes()
            except OSError as exc:
                raise SourceModelError(f"Cannot read source: {exc}", path=unit.path) from exc
        try:
            with zipfile.ZipFile(unit.root.path) as archive:
                return archive.read(unit.entry)
        except (OSError, KeyError, zipfile.BadZipFile) as exc:
            raise SourceModelError(f"Cannot read archive member: {exc}", path=unit.path) from exc

    def _archive_entries(self, root: SourceRoot) -> List[str]:
        entries = self._archives.get(root.path)
        if entries is not None:
            return entries
        try:
            with zipfile.ZipFile(root.path) as archive:
                entries = sorted(name for name in archive.namelist() if name.endswith(".java"))
        except (OSError, zipfile.BadZipFile) as exc:
            self.logger.warning("Ignoring unreadable archive %s: %s", root.path, exc)
            entries = []
        self._archives[root.path] = entries
        return entries

    def _archive_packages(self, root: SourceRoot) -> List[PackageFragment]:
        directories: Dict[str, None] = {}
        for entry in self._archive_entries(root):
            directories.setdefault(entry.rpartition("/")[0])
        return [
            PackageFragment(name=directory.replace("/", "."), path=root.path / directory, root=root)
            for directory in sorted(directories)
        ]


def _walk(declarations: Iterable[TypeDeclaration]) -> Iterable[TypeDeclaration]:
    stack = list(reversed(list(declarations)))
    while stack:
        declaration = stack.pop()
        yield declaration
        stack.extend(reversed(declaration.nested_types))


@lru_cache(maxsize=None)
def _pattern_regex(pattern: str) -> re.Pattern[str]:
    if pattern.endswith("/"):
        pattern += "**"
    parts: List[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts) + r"Z")


def _matches_any(path: str, patterns: Sequence[str]) -> bool:
    return any(_pattern_regex(pattern).match(path) for pattern in patterns)


def _accepts(root: SourceRoot, relative: str) -> bool:
    """Return True when the root-relative file path passes the root's filters."""
    if root.including and not _matches_any(relative, root.including):
        return False
    return not _matches_any(relative, root.excluding)


def _excluded_directory(root: SourceRoot, relative: str) -> bool:
    return _matches_any(relative + "/", root.excluding)


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _qualified_name(node: Node, source: bytes) -> str:
    for child in node.named_children:
        if child.type in {"scoped_identifier", "identifier"}:
            return _WHITESPACE_PATTERN.sub("", _node_text(child, source))
    return ""


def _type_name(node: Node, source: bytes) -> str:
    text = _ANNOTATION_PATTERN.sub("", _node_text(node, source))
    previous = None
    while previous != text:
        previous = text
        text = _TYPE_ARGUMENTS_PATTERN.sub("", text)
    return _WHITESPACE_PATTERN.sub("", text)


def _supertypes(node: Node, source: bytes) -> Tuple[Optional[str], List[str]]:
    superclass: Optional[str] = None
    interfaces: List[str] = []
    for child in node.children:
        if child.type == "superclass":
            for type_node in child.named_children:
                superclass = _type_name(type_node, source)
                break
        elif child.type in {"super_interfaces", "extends_interfaces"}:
            for type_list in child.named_children:
                if type_list.type != "type_list":
                    continue
                interfaces.extend(
                    name
                    for name in (_type_name(item, source) for item in type_list.named_children)
                    if name
                )
    return superclass, interfaces


def _member_declarations(body: Optional[Node]) -> Iterable[Node]:
    if body is None:
        return
    for child in body.named_children:
        if child.type in _TYPE_DECLARATIONS:
            yield child
        elif child.type == "enum_body_declarations":
            for member in child.named_children:
                if member.type in _TYPE_DECLARATIONS:
                    yield member


def _header_error_line(node: Node) -> Optional[int]:
    body = node.child_by_field_name("body")
    if body is None:
        return node.start_point[0] + 1
    for child in node.children:
        if child.start_byte >= body.start_byte:
            break
        if child.type == "ERROR" or child.is_missing or child.has_error:
            return child.start_point[0] + 1
    return None


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1


__all__ = ["JAVA_LANGUAGE", "TreeSitterSourceModel"]

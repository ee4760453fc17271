"""In-memory source model used to exercise the pipeline without parsing Java."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from aidlprep.errors import SourceModelError
from aidlprep.models import (
    CompilationUnit,
    PackageFragment,
    RootKind,
    SourceRoot,
    TypeDeclaration,
)
from aidlprep.source_model import SourceModel


class InMemorySourceModel(SourceModel):
    """Source model backed by declarations registered from tests."""

    def __init__(self) -> None:
        self._roots: List[SourceRoot] = []
        self._layout: Dict[Path, Dict[str, Dict[str, List[TypeDeclaration]]]] = {}
        self._declared: Dict[str, TypeDeclaration] = {}
        self.failures: Set[str] = set()
        self.resolved: List[str] = []

    def add_root(self, path: str, kind: RootKind = RootKind.SOURCE) -> SourceRoot:
        root = SourceRoot(path=Path(path), kind=kind)
        self._roots.append(root)
        self._layout[root.path] = {}
        return root

    def declare(
        self,
        root: SourceRoot,
        fqname: str,
        *,
        interfaces: Iterable[str] = (),
        superclass: Optional[str] = None,
        kind: str = "class",
        outer: Optional[TypeDeclaration] = None,
        unit: Optional[str] = None,
    ) -> TypeDeclaration:
        """Register ``fqname``; nested when ``outer`` is given, top-level otherwise."""
        prefix, _, name = fqname.rpartition(".")
        package = outer.package if outer is not None else prefix
        declaration = TypeDeclaration(
            fqname=fqname,
            name=name,
            kind=kind,
            package=package,
            superclass=superclass,
            interfaces=list(interfaces),
        )
        self._declared[fqname] = declaration
        if outer is not None:
            outer.nested_types.append(declaration)
            return declaration

        units = self._layout[root.path].setdefault(package, {})
        units.setdefault(unit or f"{name}.java", []).append(declaration)
        return declaration

    # SourceModel API

    def source_roots(self) -> Sequence[SourceRoot]:
        return list(self._roots)

    def packages(self, root: SourceRoot) -> Sequence[PackageFragment]:
        return [
            PackageFragment(name=name, path=root.path / name.replace(".", "/"), root=root)
            for name in self._layout[root.path]
        ]

    def compilation_units(self, package: PackageFragment) -> Sequence[CompilationUnit]:
        units = self._layout[package.root.path][package.name]
        return [
            CompilationUnit(path=package.path / filename, package=package.name, root=package.root)
            for filename in units
        ]

    def types(self, unit: CompilationUnit) -> Sequence[TypeDeclaration]:
        return list(self._layout[unit.root.path][unit.package][unit.path.name])

    def super_interfaces(self, declaration: TypeDeclaration) -> Sequence[str]:
        self.resolved.append(declaration.fqname)
        if declaration.fqname in self.failures:
            raise SourceModelError(f"Cannot resolve hierarchy of {declaration.fqname}")
        closure: Dict[str, None] = {}
        pending = list(declaration.interfaces)
        if declaration.superclass:
            pending.extend(self._inherited(declaration.superclass))
        while pending:
            name = pending.pop(0)
            if name in closure:
                continue
            closure[name] = None
            parent = self._declared.get(name)
            if parent is not None:
                pending.extend(parent.interfaces)
        return list(closure)

    def _inherited(self, superclass: str) -> List[str]:
        parent = self._declared.get(superclass)
        if parent is None:
            return []
        inherited = list(parent.interfaces)
        if parent.superclass:
            inherited.extend(self._inherited(parent.superclass))
        return inherited


__all__ = ["InMemorySourceModel"]

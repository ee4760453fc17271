"""Base contract for the source model consulted by the scanner and classifier."""

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import CompilationUnit, PackageFragment, SourceRoot, TypeDeclaration


class SourceModel(ABC):
    """Read-only view over a project's Java sources and their type hierarchy."""

    @abstractmethod
    def source_roots(self) -> Sequence[SourceRoot]:
        """Return every root known to the project, archives and external roots included."""

    @abstractmethod
    def packages(self, root: SourceRoot) -> Sequence[PackageFragment]:
        """Return the package fragments contained in ``root``."""

    @abstractmethod
    def compilation_units(self, package: PackageFragment) -> Sequence[CompilationUnit]:
        """Return the compilation units declared directly in ``package``."""

    @abstractmethod
    def types(self, unit: CompilationUnit) -> Sequence[TypeDeclaration]:
        """Return the top-level type declarations of ``unit`` in source order."""

    @abstractmethod
    def super_interfaces(self, declaration: TypeDeclaration) -> Sequence[str]:
        """Return the fully-qualified names of every interface ``declaration`` implements.

        The closure is transitive: interfaces of superclasses and super-interfaces
        are included. Implementations raise ``SourceModelError`` when the
        hierarchy cannot be resolved.
        """

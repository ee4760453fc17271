"""Walks a source model and enumerates the top-level type declarations to classify."""

from __future__ import annotations

from typing import Iterator, List

from .errors import ScanCancelled
from .logging import get_logger
from .models import CancellationToken, SourceRoot, TypeDeclaration
from .source_model import SourceModel


class Scanner:
    """Enumerates every type declared in the project's own (non-archive, non-external) roots."""

    def __init__(self, model: SourceModel) -> None:
        self.model = model
        self.logger = get_logger("scanner")

    def iter_source_roots(self) -> List[SourceRoot]:
        """Return the roots that belong to the project itself."""
        roots = []
        for root in self.model.source_roots():
            if root.is_archive or root.is_external:
                self.logger.debug("Skipping %s root %s", root.kind.value, root.path)
                continue
            roots.append(root)
        return roots

    def iter_types(self, cancel_token: CancellationToken | None = None) -> Iterator[TypeDeclaration]:
        """Yield top-level declarations root by root, package by package, unit by unit."""
        for root in self.iter_source_roots():
            self.logger.debug("Scanning source root %s", root.path)
            for package in self.model.packages(root):
                for unit in self.model.compilation_units(package):
                    if cancel_token is not None and cancel_token.cancelled:
                        raise ScanCancelled(f"Scan cancelled before {unit.path}")
                    yield from self.model.types(unit)


__all__ = ["Scanner"]

"""Marker-interface classification over nested type declarations."""

from __future__ import annotations

from typing import List

from .logging import get_logger
from .models import TypeDeclaration
from .source_model import SourceModel


class Classifier:
    """Collects the declarations whose interface closure contains the marker interface."""

    def __init__(self, model: SourceModel, marker_interface: str) -> None:
        self.model = model
        self.marker_interface = marker_interface
        self.logger = get_logger("classifier")

    def matches(self, declaration: TypeDeclaration) -> bool:
        """Return True when ``declaration`` transitively implements the marker interface."""
        return self.marker_interface in self.model.super_interfaces(declaration)

    def classify(self, declaration: TypeDeclaration) -> List[str]:
        """Return matching fully-qualified names for ``declaration`` and its nested types.

        Traversal is depth-first and pre-order: an outer type is reported before
        any of its nested types, siblings in declaration order.
        """
        found: List[str] = []
        stack = [declaration]
        while stack:
            current = stack.pop()
            if self.matches(current):
                self.logger.debug("Found %s implementing %s", current.fqname, self.marker_interface)
                found.append(current.fqname)
            stack.extend(reversed(current.nested_types))
        return found


__all__ = ["Classifier"]

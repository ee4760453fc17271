"""Source model implementations consulted by the scanner and classifier."""

from .base import SourceModel
from .classpath import discover_source_roots
from .tree_sitter import TreeSitterSourceModel

__all__ = [
    "SourceModel",
    "TreeSitterSourceModel",
    "discover_source_roots",
]

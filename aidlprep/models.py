"""Core data models shared across aidlprep components."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class RootKind(str, Enum):
    """Where a source root comes from."""

    SOURCE = "source"
    ARCHIVE = "archive"
    EXTERNAL = "external"


@dataclass
class SourceRoot:
    """Base directory (or archive) of a package hierarchy.

    ``excluding`` and ``including`` hold Eclipse-style path patterns relative to
    ``path`` (``gen/``, ``**/*Test.java``); a trailing slash covers a whole subtree.
    """

    path: Path
    kind: RootKind = RootKind.SOURCE
    excluding: List[str] = field(default_factory=list)
    including: List[str] = field(default_factory=list)

    @property
    def is_archive(self) -> bool:
        return self.kind is RootKind.ARCHIVE

    @property
    def is_external(self) -> bool:
        return self.kind is RootKind.EXTERNAL


@dataclass
class PackageFragment:
    """One package directory inside a source root."""

    name: str
    path: Path
    root: SourceRoot


@dataclass
class CompilationUnit:
    """A single Java source file, optionally stored inside an archive."""

    path: Path
    package: str
    root: SourceRoot
    entry: Optional[str] = None


@dataclass
class TypeDeclaration:
    """A named class, interface, enum, record or annotation type."""

    fqname: str
    name: str
    kind: str = "class"
    package: str = ""
    superclass: Optional[str] = None
    interfaces: List[str] = field(default_factory=list)
    nested_types: List["TypeDeclaration"] = field(default_factory=list)
    unit: Optional[CompilationUnit] = None
    line: Optional[int] = None

    @property
    def is_interface(self) -> bool:
        return self.kind in {"interface", "annotation"}


class GenerationStatus(str, Enum):
    """Terminal outcome of one generator invocation."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunState(str, Enum):
    """Lifecycle states of a single invocation."""

    IDLE = "idle"
    SCANNING = "scanning"
    WRITING = "writing"
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """Single status value reported for one project."""

    project: Path
    status: GenerationStatus
    parcelables: List[str] = field(default_factory=list)
    artifact: Optional[Path] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    transitions: List[RunState] = field(default_factory=list)
    content: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not GenerationStatus.FAILED


class CancellationToken:
    """Thread-safe flag a caller can set to stop an in-flight invocation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


__all__ = [
    "CancellationToken",
    "CompilationUnit",
    "GenerationResult",
    "GenerationStatus",
    "PackageFragment",
    "RootKind",
    "RunState",
    "SourceRoot",
    "TypeDeclaration",
]

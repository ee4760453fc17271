"""Exception types surfaced by the Parcelable index pipeline."""

from __future__ import annotations

from pathlib import Path


class AidlPrepError(RuntimeError):
    """Base class for errors raised while generating project.aidl."""


class SourceModelError(AidlPrepError):
    """Raised when sources cannot be read or a type hierarchy cannot be resolved."""

    def __init__(self, message: str, *, path: Path | None = None, line: int | None = None) -> None:
        location = ""
        if path is not None:
            location = f"{path}:{line}: " if line is not None else f"{path}: "
        super().__init__(f"{location}{message}")
        self.path = path
        self.line = line


class ArtifactWriteError(AidlPrepError):
    """Raised when the generated artifact cannot be created or replaced."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to create {path}: {reason}")
        self.path = path


class WorkspaceRefreshError(AidlPrepError):
    """Raised by workspace collaborators when a refresh request fails."""


class ScanCancelled(AidlPrepError):
    """Raised inside an invocation once its cancellation token fires."""


__all__ = [
    "AidlPrepError",
    "ArtifactWriteError",
    "ScanCancelled",
    "SourceModelError",
    "WorkspaceRefreshError",
]

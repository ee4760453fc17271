"""Workspace collaborators notified after the artifact changes on disk."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Protocol, Sequence

from .errors import WorkspaceRefreshError
from .logging import get_logger


class Workspace(Protocol):
    """Anything that can re-read part of the filesystem after it changed."""

    def refresh(self, directory: Path, depth: int = 1) -> None:
        ...


class NullWorkspace:
    """Workspace that only records the refresh request in the log."""

    def __init__(self) -> None:
        self.logger = get_logger("workspace")

    def refresh(self, directory: Path, depth: int = 1) -> None:
        self.logger.debug("Refresh requested for %s (depth %d)", directory, depth)


class CommandWorkspace:
    """Runs an external command to notify tooling, e.g. ``["touch", "{path}"]``."""

    def __init__(self, command: Sequence[str], timeout: float | None = 60.0) -> None:
        if not command:
            raise ValueError("refresh command must not be empty")
        self.command = list(command)
        self.timeout = timeout
        self.logger = get_logger("workspace")

    def refresh(self, directory: Path, depth: int = 1) -> None:
        argv = self._render(directory, depth)
        self.logger.debug("Running refresh command: %s", " ".join(argv))
        try:
            subprocess.run(
                argv,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise WorkspaceRefreshError(f"Refresh of {directory} failed: {detail}") from exc
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise WorkspaceRefreshError(f"Refresh of {directory} failed: {exc}") from exc

    def _render(self, directory: Path, depth: int) -> List[str]:
        return [
            part.replace("{path}", str(directory)).replace("{depth}", str(depth))
            for part in self.command
        ]


__all__ = ["CommandWorkspace", "NullWorkspace", "Workspace"]

"""Rendering and atomic replacement of the generated project.aidl file."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from .errors import ArtifactWriteError, WorkspaceRefreshError
from .logging import get_logger
from .workspace import NullWorkspace, Workspace

ARTIFACT_FILENAME = "project.aidl"

HEADER = (
    "// This file is auto-generated by the\n"
    "//    'Create Aidl preprocess file for Parcelable classes'\n"
    "// action. Do not modify!\n"
    "\n"
)


def render_artifact(parcelables: Sequence[str]) -> str:
    """Return the full artifact text for ``parcelables`` in the given order."""
    lines = [HEADER]
    for name in parcelables:
        lines.append(f"parcelable {name};\n")
    return "".join(lines)


def artifact_path(project_root: Path) -> Path:
    return Path(project_root) / ARTIFACT_FILENAME


class ArtifactWriter:
    """Writes project.aidl and tells the workspace about it."""

    def __init__(self, workspace: Workspace | None = None) -> None:
        self.workspace = workspace or NullWorkspace()
        self.logger = get_logger("writer")

    def write(self, project_root: Path, parcelables: Sequence[str]) -> Optional[Path]:
        """Replace the artifact with ``parcelables``; leave it untouched when the list is empty."""
        if not parcelables:
            self.logger.debug("No parcelable types, leaving %s untouched", artifact_path(project_root))
            return None

        target = artifact_path(project_root)
        content = render_artifact(parcelables)
        self._replace(target, content)
        self.logger.info("Wrote %d parcelable declarations to %s", len(parcelables), target)
        return target

    def notify(self, target: Path) -> Optional[str]:
        """Ask the workspace to refresh the artifact's directory; return a warning on failure."""
        try:
            self.workspace.refresh(target.parent, depth=1)
        except WorkspaceRefreshError as exc:
            self.logger.warning("Workspace refresh failed: %s", exc)
            return str(exc)
        except Exception as exc:
            self.logger.warning("Workspace refresh failed: %s", exc, exc_info=True)
            return f"Workspace refresh failed for {target.parent}: {exc}"
        return None

    def _replace(self, target: Path, content: str) -> None:
        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = 0o644
        except OSError as exc:
            raise ArtifactWriteError(target, str(exc)) from exc

        # Temp file lives next to the target so os.replace stays on one filesystem.
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{ARTIFACT_FILENAME}.", suffix=".tmp"
            )
        except OSError as exc:
            raise ArtifactWriteError(target, str(exc)) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(content)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, target)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise ArtifactWriteError(target, str(exc)) from exc


__all__ = ["ARTIFACT_FILENAME", "ArtifactWriter", "HEADER", "artifact_path", "render_artifact"]

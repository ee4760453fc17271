"""Tests for aidlprep.workspace."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from aidlprep.errors import WorkspaceRefreshError
from aidlprep.workspace import CommandWorkspace, NullWorkspace


def test_null_workspace_accepts_refresh(tmp_path: Path) -> None:
    NullWorkspace().refresh(tmp_path, depth=1)


def test_command_workspace_substitutes_placeholders(tmp_path: Path) -> None:
    marker = tmp_path / "refreshed.txt"
    script = "import sys, pathlib; pathlib.Path(sys.argv[1]).write_text(sys.argv[2] + ':' + sys.argv[3])"
    workspace = CommandWorkspace([sys.executable, "-c", script, str(marker), "{path}", "{depth}"])

    workspace.refresh(tmp_path, depth=1)

    assert marker.read_text() == f"{tmp_path}:1"


def test_command_workspace_raises_on_failure(tmp_path: Path) -> None:
    workspace = CommandWorkspace([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])

    with pytest.raises(WorkspaceRefreshError) as excinfo:
        workspace.refresh(tmp_path)

    assert "boom" in str(excinfo.value)


def test_command_workspace_raises_for_missing_program(tmp_path: Path) -> None:
    workspace = CommandWorkspace([str(tmp_path / "no-such-program")])

    with pytest.raises(WorkspaceRefreshError):
        workspace.refresh(tmp_path)


def test_command_workspace_rejects_empty_command() -> None:
    with pytest.raises(ValueError):
        CommandWorkspace([])

"""Configuration loading for aidlprep (.aidlprep.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".aidlprep.yml"
DEFAULT_MARKER_INTERFACE = "android.os.Parcelable"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class WorkspaceConfig:
    """How the host workspace is told about a regenerated artifact."""

    refresh_command: List[str] = field(default_factory=list)


@dataclass
class AidlPrepConfig:
    """Represents the settings defined in .aidlprep.yml."""

    root: Path
    marker_interface: str = DEFAULT_MARKER_INTERFACE
    strict: bool = True
    use_classpath: bool = True
    source_roots: List[str] = field(default_factory=list)
    external_roots: List[str] = field(default_factory=list)
    archives: List[str] = field(default_factory=list)
    known_parcelables: List[str] = field(default_factory=list)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)


def load_config(config_path: Path) -> AidlPrepConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AidlPrepConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = AidlPrepConfig(root=root)

    marker = _as_str(data.get("marker_interface"))
    if marker is not None:
        marker = marker.strip()
        if not marker or " " in marker:
            raise ConfigError(f"Invalid marker_interface: {marker!r}")
        config.marker_interface = marker

    strict = _as_bool(data.get("strict"))
    if strict is not None:
        config.strict = strict

    use_classpath = _as_bool(data.get("use_classpath"))
    if use_classpath is not None:
        config.use_classpath = use_classpath

    config.source_roots = _as_str_list(data.get("source_roots"))
    config.external_roots = _as_str_list(data.get("external_roots"))
    config.archives = _as_str_list(data.get("archives"))
    config.known_parcelables = _as_str_list(data.get("known_parcelables"))

    workspace_data = _as_dict(data.get("workspace"))
    if workspace_data:
        config.workspace.refresh_command = _as_str_list(workspace_data.get("refresh_command"))

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AidlPrepConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_MARKER_INTERFACE",
    "WorkspaceConfig",
    "load_config",
]

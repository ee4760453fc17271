"""Source root discovery from configuration, Eclipse .classpath files and conventions."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Sequence

from ..config import AidlPrepConfig
from ..logging import get_logger
from ..models import RootKind, SourceRoot

CLASSPATH_FILENAME = ".classpath"

_CONVENTIONAL_ROOTS: tuple[str, ...] = ("src", "src/main/java", "gen")
_ARCHIVE_SUFFIXES = {".jar", ".zip"}

logger = get_logger("classpath")


def discover_source_roots(project_root: Path, config: AidlPrepConfig) -> List[SourceRoot]:
    """Return the roots of ``project_root`` in classpath order."""
    if config.source_roots or config.external_roots or config.archives:
        roots = _configured_roots(project_root, config)
        logger.debug("Using %d configured roots for %s", len(roots), project_root)
        return roots

    classpath = project_root / CLASSPATH_FILENAME
    if config.use_classpath and classpath.is_file():
        roots = _parse_classpath(project_root, classpath)
        logger.debug("Using %d roots from %s", len(roots), classpath)
        return roots

    candidates = [name for name in _CONVENTIONAL_ROOTS if (project_root / name).is_dir()]
    if "src/main/java" in candidates:
        # Maven layout: src itself is not a package root.
        candidates.remove("src")
    roots = [SourceRoot(path=(project_root / name).resolve()) for name in candidates]
    logger.debug("Using %d conventional roots for %s", len(roots), project_root)
    return roots


def _configured_roots(project_root: Path, config: AidlPrepConfig) -> List[SourceRoot]:
    roots: List[SourceRoot] = []
    for entry in config.source_roots:
        path = _resolve(project_root, entry)
        kind = RootKind.SOURCE if _is_within(path, project_root) else RootKind.EXTERNAL
        roots.append(SourceRoot(path=path, kind=kind))
    for entry in config.external_roots:
        roots.append(SourceRoot(path=_resolve(project_root, entry), kind=RootKind.EXTERNAL))
    for entry in config.archives:
        roots.append(SourceRoot(path=_resolve(project_root, entry), kind=RootKind.ARCHIVE))
    return _dedupe(roots)


def _parse_classpath(project_root: Path, classpath: Path) -> List[SourceRoot]:
    try:
        document = ET.fromstring(classpath.read_bytes())
    except (OSError, ET.ParseError) as exc:
        logger.warning("Ignoring unreadable %s: %s", classpath, exc)
        return []

    roots: List[SourceRoot] = []
    for entry in document.iter("classpathentry"):
        kind = entry.get("kind")
        raw_path = entry.get("path")
        if not raw_path:
            continue
        if kind == "src":
            if raw_path.startswith("/"):
                # A required project from the same workspace, only usable for resolution.
                sibling = (project_root.parent / raw_path.lstrip("/")).resolve()
                if (sibling / "src").is_dir():
                    sibling = sibling / "src"
                roots.append(SourceRoot(path=sibling, kind=RootKind.EXTERNAL))
                continue
            path = _resolve(project_root, raw_path)
            kind_value = RootKind.SOURCE if _is_within(path, project_root) else RootKind.EXTERNAL
            roots.append(
                SourceRoot(
                    path=path,
                    kind=kind_value,
                    excluding=_patterns(entry.get("excluding")),
                    including=_patterns(entry.get("including")),
                )
            )
        elif kind == "lib" and Path(raw_path).suffix.lower() in _ARCHIVE_SUFFIXES:
            source_path = entry.get("sourcepath") or raw_path
            if Path(source_path).suffix.lower() not in _ARCHIVE_SUFFIXES:
                source_path = raw_path
            roots.append(SourceRoot(path=_resolve(project_root, source_path), kind=RootKind.ARCHIVE))
    return _dedupe(roots)


def _patterns(value: str | None) -> List[str]:
    if not value:
        return []
    return [pattern.strip() for pattern in value.split("|") if pattern.strip()]


def _resolve(project_root: Path, entry: str) -> Path:
    path = Path(entry).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return path.resolve()


def _is_within(path: Path, project_root: Path) -> bool:
    try:
        path.relative_to(project_root.resolve())
    except ValueError:
        return False
    return True


def _dedupe(roots: Sequence[SourceRoot]) -> List[SourceRoot]:
    seen: set[Path] = set()
    unique: List[SourceRoot] = []
    for root in roots:
        if root.path in seen:
            continue
        seen.add(root.path)
        unique.append(root)
    return unique


__all__ = ["CLASSPATH_FILENAME", "discover_source_roots"]

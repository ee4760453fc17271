"""Logging for aidlprep runs.

Every component logs under the ``aidlprep`` hierarchy. Projects processed
concurrently by ``run_many`` interleave on the same handlers, so per-run
messages go through :class:`ProjectLogAdapter`, which tags each line with the
project it belongs to.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "aidlprep"
_CONSOLE_FORMAT = "[aidlprep] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the aidlprep hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ProjectLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the name of the project being processed."""

    def __init__(self, logger: logging.Logger, project: Path) -> None:
        super().__init__(logger, {"project": str(project)})
        self.label = Path(project).name or str(project)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.label}] {msg}", kwargs


def project_logger(name: str, project: Path) -> ProjectLogAdapter:
    """Return a logger for one invocation against ``project``."""
    return ProjectLogAdapter(get_logger(name), project)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route aidlprep logs to stderr and, when given, to ``log_file``."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), level, _CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
        )
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["ProjectLogAdapter", "configure_logging", "get_logger", "project_logger"]

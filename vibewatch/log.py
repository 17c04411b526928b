"""Logging setup for the ``vibewatch`` logger hierarchy.

Components take an optional ``logging.Logger`` and fall back to their module
logger, so nothing here is required for library use. The CLI calls
``configure_logging`` once to route records to stderr or a file.
"""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "vibewatch"
LOG_LEVEL_ENV = "VIBEWATCH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: str | None = None) -> int:
    """Map a level name (or ``$VIBEWATCH_LOG_LEVEL``) to a logging level.

    Unknown names fall back to ``WARNING`` so stray output stays quiet.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Attach one handler to the package logger, replacing earlier ones."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    return logger


__all__ = ["LOGGER_NAME", "LOG_FORMAT", "LOG_LEVEL_ENV", "configure_logging", "resolve_level"]

"""Package logging for the wellness index.

Every logger lives under the ``wellness_index`` package logger, which owns the
only handler. Records go to whatever ``sys.stderr`` is when they are emitted,
so redirected or captured streams see them.

Usage example:
    from wellness_index.observability.logging import (
        get_logger,
        parse_log_level,
        set_log_level,
    )

    logger = get_logger("wellness_index.calculate")
    logger.info("Scoring %s domains", domain_count)
    set_log_level(parse_log_level("warning"))
"""

from __future__ import annotations

import logging
import sys
import time
from typing import TextIO

PACKAGE_LOGGER = "wellness_index"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class LogLevelError(ValueError):
    """Raised when a log level name is not recognised."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Log level must be one of {', '.join(LOG_LEVELS)}, got '{value}'.")


class _StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    def __init__(self) -> None:
        logging.Handler.__init__(self)

    @property  # type: ignore[override]
    def stream(self) -> TextIO:
        return sys.stderr


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(handler, _StderrHandler) for handler in logger.handlers):
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler = _StderrHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package logger, configuring it on first use.

    Args:
        name: Module-qualified name. Names outside ``wellness_index`` are
            nested beneath it.

    Returns:
        A logger whose records reach stderr with UTC ISO timestamps.
    """
    _package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def parse_log_level(value: str) -> int:
    """Map a case-insensitive level name onto a ``logging`` level."""
    name = value.strip().upper()
    if name not in LOG_LEVELS:
        raise LogLevelError(value)
    return logging.getLevelNamesMapping()[name]


def set_log_level(level: int) -> None:
    """Set the threshold for every wellness index logger."""
    _package_logger().setLevel(level)

"""Observability helpers."""

from .logging import LOG_LEVELS, LogLevelError, get_logger, parse_log_level, set_log_level

__all__ = ["LOG_LEVELS", "LogLevelError", "get_logger", "parse_log_level", "set_log_level"]

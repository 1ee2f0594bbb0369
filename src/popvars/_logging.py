"""Logging utilities for popvars.

Loggers are standalone structlog loggers writing text lines to stderr. They
never touch global structlog configuration, so embedding applications keep
control of their own logging.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

DEFAULT_LOG_LEVEL = "warning"

_logger: FilteringBoundLogger | None = None


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks POPVARS_DEBUG first (sets DEBUG if present), then
    POPVARS_LOG_LEVEL. Defaults to WARNING if neither is set.
    """
    if getenv("POPVARS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("POPVARS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(), logging.WARNING)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a level name (debug, info, warning, error) to its integer value.

    With *respect_env*, POPVARS_DEBUG still forces DEBUG.
    """
    if respect_env and getenv("POPVARS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.WARNING)


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    stream: TextIO | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    Args:
        level: Optional log level name. Overrides POPVARS_LOG_LEVEL but not
            POPVARS_DEBUG.
        log_format: Output format, either "json" or "text".
        stream: Where to write; defaults to stderr.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True) if level is not None else _get_log_level()
    )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.PrintLogger(file=stream if stream is not None else sys.stderr),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def get_logger() -> FilteringBoundLogger:
    """Return the shared popvars logger, creating it from the environment on first use."""
    global _logger
    if _logger is None:
        _logger = create_logger()
    return _logger


def configure_logging(
    level: str | None = None,
    *,
    log_format: LogFormatType = "text",
    stream: TextIO | None = None,
) -> FilteringBoundLogger:
    """Replace the shared logger, e.g. from a command-line ``--log-level``."""
    global _logger
    _logger = create_logger(level=level, log_format=log_format, stream=stream)
    return _logger

"""Structured logging configuration.

This module initializes structlog with either a human-friendly console
renderer or a JSON renderer, always writing to stderr.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_FORMAT


def configure_logging(log_format: str = DEFAULT_LOG_FORMAT) -> None:
    """Configure process-wide structured logging.

    Args:
        log_format: ``text`` for console output or ``json`` for structured lines.
    """
    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    """Return a print logger bound to the current ``sys.stderr``."""
    # Resolved per call so redirected stderr streams are honored.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger accepting keyword event fields.
    """
    return structlog.get_logger(name)

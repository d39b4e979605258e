"""Logging setup for procview."""

import logging
import sys

import structlog
from structlog.typing import FilteringBoundLogger


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger so Textual's capture applies while the app runs
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "WARNING") -> None:
    """
    Configure structlog to render to stderr.

    Args:
        level: Minimum level name, e.g. "DEBUG" or "INFO".
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound to a component name."""
    return structlog.get_logger(name)

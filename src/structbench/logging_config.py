"""structlog configuration shared by the CLI and library entry points."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

LOG_FORMATS: tuple[str, ...] = ("console", "json")


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per logger so a replaced or closed sys.stderr is never kept.
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(log_format: str = "console", level: str = "warning") -> None:
    """Configure structlog rendering and level filtering.

    Logs go to stderr so they never interleave with JSON written to stdout.

    Args:
        log_format: "console" for human-readable output, "json" for one
            JSON object per line.
        level: Minimum level name (debug, info, warning, error).

    Raises:
        ValueError: If log_format or level is not recognised.
    """
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        raise ValueError(
            f"Invalid log format: {log_format!r}. Must be one of {', '.join(LOG_FORMATS)}."
        )

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )

"""structlog setup for the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "warning", *, json_logs: bool = False) -> None:
    """Route structlog output to stderr at *level*, as JSON or console text."""
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        msg = f"Unknown log level: {level}"
        raise ValueError(msg)

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

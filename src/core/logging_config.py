"""Structured logging configuration.

This module initializes structlog loggers with a stable JSON format
so partition and run events can be grepped and aggregated. Log lines go
to stderr, keeping stdout for command output.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger(name)


def _stderr_logger(*_args: Any) -> structlog.PrintLogger:
    # stderr may be replaced after configuration, so it is looked up per logger.
    return structlog.PrintLogger(sys.stderr)

"""Structured logging configuration using *structlog*."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(level: str = "INFO", *, stream: TextIO | None = None) -> None:
    """Configure *structlog* processors for the shim subsystem.

    Parameters
    ----------
    level:
        Minimum level name (``"debug"``, ``"INFO"``, ...); unknown names
        fall back to ``INFO``.
    stream:
        Where log lines are written.  Defaults to ``sys.stderr`` so that
        CLI output on stdout stays machine-readable.
    """
    out = stream if stream is not None else sys.stderr
    renderer = structlog.dev.ConsoleRenderer() if out.isatty() else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

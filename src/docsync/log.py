"""Logging configuration for docsync with structlog support."""

from __future__ import annotations

import logging
import sys
from typing import Any, Final

import structlog


LogLevel = int | str

QUIET_LOGGERS: Final = ("httpx", "httpcore")
"""Libraries logging request URLs, which carry the Drive API key."""


def configure_logging(level: LogLevel = "INFO", *, json_logs: bool = False) -> None:
    """Configure structlog on top of standard logging.

    Terminals get the colored console renderer, everything else (CI job logs)
    one JSON object per line.

    Args:
        level: Logging level
        json_logs: Force JSON output regardless of TTY detection
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logging.basicConfig(
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
        format="%(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs or not sys.stderr.isatty():
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, prefixed with 'docsync.' unless already inside it."""
    full_name = name if name.split(".")[0] == "docsync" else f"docsync.{name}"
    return structlog.get_logger(full_name)  # type: ignore[no-any-return]

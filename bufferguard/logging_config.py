"""
Structured logging for BufferGuard passes.

structlog wraps stdlib logging. Output goes to stderr so the JSON reports
printed on stdout stay machine-readable: console lines when run by hand,
one JSON object per line when BUFFERGUARD_LOG_FORMAT=json (cron, systemd).

Every line carries `service` and `version`. Pass-level context (command,
dry_run, calendar, the event or buffer being worked on) is bound with
run_context() and merged into each line emitted inside the block.

Usage:
    from bufferguard.logging_config import get_logger, run_context, setup_logging

    setup_logging()
    logger = get_logger(__name__)

    with run_context(command="run", dry_run=True):
        logger.info("buffer_pass_started", events=12)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from bufferguard import __version__

SERVICE_NAME = "bufferguard"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("aiohttp", "asyncio")


def _add_service(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Log level name (default: BUFFERGUARD_LOG_LEVEL or INFO)
        json_output: JSON lines instead of console output
            (default: BUFFERGUARD_LOG_FORMAT == "json")
    """
    if level is None:
        level = os.environ.get("BUFFERGUARD_LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("BUFFERGUARD_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        # Records from plain stdlib loggers get the same fields
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


@contextmanager
def run_context(**context: Any) -> Iterator[None]:
    """Bind context for the duration of a block; None values are not bound."""
    values = {key: value for key, value in context.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["get_logger", "run_context", "setup_logging"]

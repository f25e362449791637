"""Structured logging for the storage engine.

The engine runs inside a host process, so it never installs handlers on its
own; the host (or ``load_engine``) calls ``setup_logging`` once. Until then
structlog's defaults apply and events still reach stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from mysql_storage_engine.infrastructure.config import ObservabilityConfig

SECRET_KEYS = frozenset({"password", "passwd"})


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values so connection options can be logged whole."""
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = "***"
    return event_dict


def setup_logging(
    config: ObservabilityConfig | None = None,
    *,
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure structlog for JSON or console output.

    Explicit ``level``/``log_format`` arguments win over ``config``.

    Args:
        config: Observability settings to read defaults from
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' or 'console'
    """
    level = (level or (config.log_level if config else "INFO")).upper()
    log_format = log_format or (config.log_format if config else "json")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
    ]

    renderer: Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger instance.

    Args:
        name: Logger name (module name typically)
        **initial_context: Context bound to every event from this logger

    Returns:
        A bound structlog logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_engine_context(engine: str, table: str) -> None:
    """Attach engine and table to every event logged in the current context."""
    structlog.contextvars.bind_contextvars(engine=engine, table=table)

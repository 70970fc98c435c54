"""
structlog setup for the sync agent.

Every event carries the terminal id so logs shipped from a fleet of
terminals can be told apart. Console rendering while developing, JSON lines
otherwise.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from possync.config.settings import Settings, get_settings

# Per-request HTTP chatter from the probe and the replay client
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "uvicorn.access")


def terminal_stamp(settings: Settings) -> Processor:
    """Processor that adds app, version and terminal id to each event."""
    stamp = {
        "app": settings.app_name,
        "version": settings.app_version,
        "terminal_id": settings.terminal_id,
    }

    def add_stamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in stamp.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_stamp


def configure_logging(settings: Settings | None = None, json: bool | None = None) -> None:
    """
    Configure structlog over stdlib logging.

    Args:
        settings: Defaults to the process settings
        json: Force JSON (True) or console (False) output; by default JSON
            outside development
    """
    settings = settings or get_settings()
    if json is None:
        json = settings.environment != "development"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        terminal_stamp(settings),
        structlog.processors.StackInfoRenderer(),
    ]
    if json:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

"""
Structured logging for the portal.
structlog renders JSON in production and a console format elsewhere;
stdlib loggers (uvicorn, sqlalchemy, apscheduler) share the same pipeline.
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from asgi_correlation_id import correlation_id

from securepay.config import Settings

# Credentials must never reach a log line, whatever a caller binds
SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "session_token", "jwt", "authorization", "secret"}
)
REDACTED = "[redacted]"

_handler: Optional[logging.Handler] = None


def add_correlation_id(logger, method_name, event_dict):
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def redact_sensitive(logger, method_name, event_dict):
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _shared_processors() -> List[Any]:
    return [
        add_correlation_id,
        structlog.contextvars.merge_contextvars,
        redact_sensitive,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderers(settings: Settings) -> List[Any]:
    if settings.is_production:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging(settings: Settings) -> None:
    """Configure structlog once; the root handler and level follow the latest settings."""
    global _handler
    shared = _shared_processors()

    if not structlog.is_configured():
        structlog.configure(
            processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *_renderers(settings)],
        )
    )

    root_logger = logging.getLogger()
    if _handler is not None:
        root_logger.removeHandler(_handler)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    _handler = handler

    # One INFO line per job run otherwise
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

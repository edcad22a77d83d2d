"""Structured logging configuration.

Configures structlog with JSON output in production and a coloured console
renderer in development. Request-scoped values (request_id, session prefix)
are carried through structlog contextvars.

Log format (production):
    {
        "timestamp": "2026-02-17T10:30:45.123456Z",
        "level": "info",
        "logger": "text2deck.auth.oauth",
        "event": "oauth.callback_accepted",
        "request_id": "3f0c...",
        "session": "a1b2c3d4..."
    }

Secrets (access tokens, code verifiers, authorization codes) are never
logged. Opaque identifiers go through redact_identifier() first.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

_REDACT_VISIBLE_CHARS = 8


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structured logging for the application.

    Args:
        json_logs: Use JSON format (True for production, False for dev)
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(),
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ------------------------------------------------------------------ #
# Context Binding Helpers
# ------------------------------------------------------------------ #


def redact_identifier(value: str | None) -> str:
    """Return a log-safe prefix of an opaque identifier.

    Session ids and state tokens are bearer credentials while live; only the
    first few characters ever reach the logs.
    """
    if not value:
        return ""
    if len(value) <= _REDACT_VISIBLE_CHARS:
        return "***"
    return value[:_REDACT_VISIBLE_CHARS] + "..."


def bind_session_context(session_id: str) -> None:
    """Bind the (redacted) session to log context for this request."""
    structlog.contextvars.bind_contextvars(session=redact_identifier(session_id))


def clear_context() -> None:
    """Clear all context variables (useful for testing)."""
    structlog.contextvars.clear_contextvars()

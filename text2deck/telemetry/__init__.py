"""Telemetry package for observability.

This package contains structured logging setup and the helpers that keep
request context (and never secrets) in every log entry.
"""

from __future__ import annotations

from text2deck.telemetry.logging import (
    bind_session_context,
    clear_context,
    configure_logging,
    redact_identifier,
)

__all__ = [
    "bind_session_context",
    "clear_context",
    "configure_logging",
    "redact_identifier",
]

"""Tests for structured logging helpers."""

import structlog

from text2deck.telemetry.logging import (
    bind_session_context,
    clear_context,
    configure_logging,
    redact_identifier,
)


class TestRedactIdentifier:

    def test_long_value_keeps_prefix_only(self):
        assert redact_identifier("abcdefghijklmnop") == "abcdefgh..."

    def test_short_value_fully_masked(self):
        assert redact_identifier("abcdefgh") == "***"

    def test_empty(self):
        assert redact_identifier(None) == ""
        assert redact_identifier("") == ""


class TestContext:

    def test_bind_session_context_is_redacted(self):
        clear_context()
        bind_session_context("sessionid-very-secret-value")

        context = structlog.contextvars.get_contextvars()
        assert context["session"] == "sessioni..."
        assert "very-secret" not in str(context)

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigureLogging:

    def test_json_renderer_in_production_mode(self):
        configure_logging(json_logs=True, log_level="INFO")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_in_dev_mode(self):
        configure_logging(json_logs=False, log_level="DEBUG")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

"""Tests for structlog configuration."""

import structlog

from possync.config.logging import configure_logging, terminal_stamp


class TestTerminalStamp:
    def test_adds_terminal_fields(self, test_settings):
        processor = terminal_stamp(test_settings)

        event = processor(None, "info", {"event": "operation_enqueued"})

        assert event["terminal_id"] == "pos-test"
        assert event["app"] == test_settings.app_name
        assert event["version"] == test_settings.app_version

    def test_keeps_explicit_values(self, test_settings):
        processor = terminal_stamp(test_settings)

        event = processor(None, "info", {"event": "x", "terminal_id": "other"})

        assert event["terminal_id"] == "other"


class TestConfigureLogging:
    def test_json_renderer_outside_development(self, test_settings):
        test_settings.environment = "production"

        configure_logging(test_settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_override(self, test_settings):
        test_settings.environment = "production"

        configure_logging(test_settings, json=False)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

"""
Unit Tests - Logging Configuration
"""
import json
import logging

import pytest
import structlog

from orderdesk.config.logging import configure_logging


@pytest.fixture
def restore_root_logger():
    """Drop the stdout handler bound to this test's capture stream"""
    root = logging.getLogger()
    level = root.level
    yield
    root.handlers = [h for h in root.handlers if type(h) is not logging.StreamHandler]
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()


def _events(output: str):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_json_records_carry_service_and_request_context(self, capsys, restore_root_logger):
        configure_logging("INFO", log_format="json")
        structlog.contextvars.bind_contextvars(request_id="req-1", viewer="alice@example.com")

        structlog.get_logger("orderdesk.tests.feed").info("Feed opened", unread=0)

        event = next(e for e in _events(capsys.readouterr().out) if e["event"] == "Feed opened")
        assert event["request_id"] == "req-1"
        assert event["viewer"] == "alice@example.com"
        assert event["service"] == "orderdesk"
        assert event["level"] == "info"
        assert event["unread"] == 0

    def test_stdlib_records_share_the_handler(self, capsys, restore_root_logger):
        configure_logging("INFO", log_format="json")

        logging.getLogger("uvicorn.error").warning("Worker restarted")

        event = next(e for e in _events(capsys.readouterr().out) if e["event"] == "Worker restarted")
        assert event["level"] == "warning"
        assert event["service"] == "orderdesk"

    def test_level_filters_records(self, capsys, restore_root_logger):
        configure_logging("WARNING", log_format="json")

        structlog.get_logger("orderdesk.tests.level").info("Hidden event")

        assert all(e["event"] != "Hidden event" for e in _events(capsys.readouterr().out))

"""
Unit Tests - Logging Configuration
"""
import io
import json
import logging

import pytest
import structlog

from shop_analytics.config.logging import configure_logging


@pytest.fixture
def log_stream():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield io.StringIO()
    structlog.reset_defaults()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _events(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    """Tests for structured log output"""

    def test_json_events_carry_bound_context(self, log_stream):
        configure_logging("INFO", "json", stream=log_stream)

        with structlog.contextvars.bound_contextvars(period="week"):
            structlog.get_logger("shop_analytics.checks").info("Snapshot built", revenue=5)

        event = _events(log_stream)[-1]
        assert event["event"] == "Snapshot built"
        assert event["period"] == "week"
        assert event["revenue"] == 5
        assert event["level"] == "info"
        assert event["logger"] == "shop_analytics.checks"

    def test_level_filters_events(self, log_stream):
        configure_logging("WARNING", "json", stream=log_stream)
        log = structlog.get_logger("shop_analytics.levels")

        log.info("Fetching storefront records")
        log.warning("Order detail fetch failed", order_id="2")

        assert [e["event"] for e in _events(log_stream)] == ["Order detail fetch failed"]

    def test_stdlib_loggers_share_the_format(self, log_stream):
        configure_logging("DEBUG", "json", stream=log_stream)
        logging.getLogger("asyncio").warning("Task was destroyed")

        assert _events(log_stream)[-1]["event"] == "Task was destroyed"
        assert logging.getLogger("httpx").level == logging.WARNING

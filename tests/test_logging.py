"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog

from health_insights.config import AppSettings
from health_insights.logging import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_output(restore_logging, capsys):
    setup_logging(AppSettings(log_level="INFO", log_format="json"))

    structlog.get_logger("health_insights.test").info("insights_selected", count=3)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "insights_selected"
    assert payload["count"] == 3
    assert payload["level"] == "info"


def test_level_is_applied(restore_logging):
    setup_logging(AppSettings(log_level="WARNING", log_format="console"))

    assert logging.getLogger().level == logging.WARNING


def test_debug_forces_debug_level(restore_logging):
    setup_logging(AppSettings(log_level="ERROR", log_format="json"), debug=True)

    assert logging.getLogger().level == logging.DEBUG

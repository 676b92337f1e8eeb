"""Tests for configuration validation."""

import pytest

from health_insights.config import (
    VALID_LOG_LEVELS,
    AppSettings,
    InfluxDBSettings,
    InsightSettings,
    Settings,
    StoreSettings,
)


def test_influxdb_token_validation():
    """InfluxDB token must be non-empty."""
    with pytest.raises(ValueError, match="InfluxDB token cannot be empty"):
        InfluxDBSettings(token="")


def test_influxdb_query_timeout_validation():
    """Query timeout must be positive."""
    with pytest.raises(ValueError, match="Query timeout must be positive"):
        InfluxDBSettings(token="token", query_timeout_seconds=0)


def test_app_settings_normalize_log_fields():
    """App settings normalize log format and log level."""
    settings = AppSettings(log_level="debug", log_format="Console")

    assert settings.log_level == "DEBUG"
    assert settings.log_format == "console"
    assert settings.log_level in VALID_LOG_LEVELS


def test_app_settings_reject_unknown_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        AppSettings(log_format="xml")


def test_insight_settings_defaults(monkeypatch):
    """Defaults match the documented pipeline behavior."""
    for name in (
        "INSIGHTS_MAX_PER_DAY",
        "INSIGHTS_TOPK_PER_FAMILY",
        "INSIGHTS_BASELINE_DAYS",
        "INSIGHTS_DEFAULT_TIMEZONE",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = InsightSettings()

    assert settings.max_per_day == 12
    assert settings.topk_per_family == 3
    assert settings.baseline_days == 14
    assert settings.default_timezone == "Australia/Perth"


def test_insight_settings_from_env(monkeypatch):
    """Environment variables with the INSIGHTS_ prefix are applied."""
    monkeypatch.setenv("INSIGHTS_MAX_PER_DAY", "5")
    monkeypatch.setenv("INSIGHTS_DEBUG", "true")
    monkeypatch.setenv("INSIGHTS_FAMILY_WEIGHTS", '{"sleep": 1.5}')

    settings = InsightSettings()

    assert settings.max_per_day == 5
    assert settings.debug is True
    assert settings.family_weights == {"sleep": 1.5}


def test_insight_settings_cap_validation():
    with pytest.raises(ValueError, match="Selection cap must be at least 1"):
        InsightSettings(max_per_day=0)
    with pytest.raises(ValueError, match="Selection cap must be at least 1"):
        InsightSettings(topk_per_family=0)


def test_insight_settings_range_validation():
    with pytest.raises(ValueError, match="Baseline days must be between"):
        InsightSettings(baseline_days=0)
    with pytest.raises(ValueError, match="Max concurrent metrics must be between"):
        InsightSettings(max_concurrent_metrics=100)


def test_settings_are_frozen():
    """Settings cannot change after load."""
    settings = StoreSettings(path="/tmp/a.db")
    with pytest.raises(ValueError):
        settings.path = "/tmp/b.db"


def test_settings_load(monkeypatch):
    """Combined settings load every section from the environment."""
    monkeypatch.setenv("INFLUXDB_TOKEN", "secret")
    monkeypatch.setenv("STORE_PATH", "/tmp/insights.db")

    settings = Settings.load()

    assert settings.influxdb.token == "secret"
    assert settings.store.path == "/tmp/insights.db"

"""Tests for tracing utilities."""

from health_insights.config import TracingSettings
from health_insights.tracing import get_tracer, setup_tracing


def test_setup_tracing_disabled():
    """Tracing should be disabled when setting is false."""
    assert setup_tracing(TracingSettings(enabled=False)) is False


def test_setup_tracing_exporter_disabled(monkeypatch):
    """Tracing should be disabled when exporter env var is none."""
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "none")

    settings = TracingSettings(enabled=True, service_name="health-insights")
    assert setup_tracing(settings) is False


def test_tracer_spans_work_without_setup():
    """Engine spans are no-ops until tracing is configured."""
    with get_tracer().start_as_current_span("compute_daily_insights") as span:
        span.set_attribute("insights.date", "2024-01-15")

"""Tests for local day window resolution."""

from datetime import UTC, date, datetime, timedelta

import pytest

from health_insights.errors import InvalidDateError, InvalidTimezoneError
from health_insights.window import parse_local_date, resolve_window


def test_perth_window_is_offset_by_eight_hours():
    window = resolve_window("2024-01-15", "Australia/Perth")

    assert window.start == datetime(2024, 1, 14, 16, 0, tzinfo=UTC)
    assert window.end == datetime(2024, 1, 15, 16, 0, tzinfo=UTC)
    assert window.local_date == date(2024, 1, 15)
    assert window.date_str == "2024-01-15"


def test_utc_window():
    window = resolve_window("2024-03-01", "UTC")

    assert window.start == datetime(2024, 3, 1, tzinfo=UTC)
    assert window.end - window.start == timedelta(hours=24)


def test_dst_start_gives_short_day():
    """Clocks jump forward on 2024-03-10 in New York."""
    window = resolve_window("2024-03-10", "America/New_York")

    assert window.end - window.start == timedelta(hours=23)


def test_dst_end_gives_long_day():
    window = resolve_window("2024-11-03", "America/New_York")

    assert window.end - window.start == timedelta(hours=25)


def test_window_is_half_open():
    window = resolve_window("2024-01-15", "UTC")

    assert window.contains(window.start)
    assert not window.contains(window.end)
    assert window.contains(window.end - timedelta(microseconds=1))


def test_resolution_is_deterministic():
    assert resolve_window("2024-01-15", "Europe/Berlin") == resolve_window(
        "2024-01-15", "Europe/Berlin"
    )


def test_extend_back_keeps_end():
    window = resolve_window("2024-01-15", "Australia/Perth")
    extended = window.extend_back(14)

    assert extended.end == window.end
    assert extended.start == datetime(2023, 12, 31, 16, 0, tzinfo=UTC)
    assert window.extend_back(0) == window


@pytest.mark.parametrize("value", ["2024-02-30", "15/01/2024", "2024-1", "", "tomorrow"])
def test_invalid_dates_raise(value):
    with pytest.raises(InvalidDateError):
        resolve_window(value, "UTC")


def test_leap_day_is_valid():
    assert parse_local_date("2024-02-29") == date(2024, 2, 29)


@pytest.mark.parametrize("tz", ["Mars/Olympus", "", "Not A Zone"])
def test_invalid_timezone_raises(tz):
    with pytest.raises(InvalidTimezoneError):
        resolve_window("2024-01-15", tz)


def test_errors_are_value_errors():
    """Callers catching ValueError also catch input errors."""
    with pytest.raises(ValueError):
        resolve_window("nope", "UTC")

"""Local calendar day to UTC window resolution."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidDateError, InvalidTimezoneError
from .models import Window


def parse_local_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` string into a calendar date."""
    if isinstance(value, datetime):
        raise InvalidDateError(value)
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidDateError(value) from e


def load_timezone(name: str) -> ZoneInfo:
    """Load an IANA zone, raising InvalidTimezoneError for unknown ids."""
    if not name or not isinstance(name, str):
        raise InvalidTimezoneError(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(name) from e


def resolve_window(local_date: str | date, timezone: str) -> Window:
    """Resolve a local calendar date in a timezone to a UTC window.

    The window runs from local midnight of the date to local midnight of the
    following date, so DST transition days produce 23 or 25 hour windows.

    Args:
        local_date: Calendar date as ``YYYY-MM-DD`` or a ``date``.
        timezone: IANA zone id, e.g. ``Australia/Perth``.

    Returns:
        Window with UTC ``start`` and ``end``.

    Raises:
        InvalidDateError: If the date cannot be parsed.
        InvalidTimezoneError: If the zone id is not recognized.
    """
    tz = load_timezone(timezone)
    day = parse_local_date(local_date)

    local_start = datetime.combine(day, datetime.min.time(), tzinfo=tz)
    local_end = datetime.combine(day + timedelta(days=1), datetime.min.time(), tzinfo=tz)

    return Window(
        start=local_start.astimezone(UTC),
        end=local_end.astimezone(UTC),
        timezone=timezone,
        local_date=day,
    )

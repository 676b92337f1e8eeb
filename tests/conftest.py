"""Pytest configuration and fixtures."""

from datetime import date, datetime, timedelta
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from health_insights.config import InsightSettings  # noqa: E402
from health_insights.errors import DataSourceUnavailableError  # noqa: E402
from health_insights.models import (  # noqa: E402
    DiscoveryResult,
    Family,
    MetricSpec,
    RuleContext,
    Series,
    SeriesPoint,
    Window,
)
from health_insights.sources import MetricDiscovery, SeriesReader  # noqa: E402
from health_insights.store import InsightStore  # noqa: E402
from health_insights.window import resolve_window  # noqa: E402

LOCAL_DATE = "2024-01-15"
TIMEZONE = "Australia/Perth"
USER_ID = "user-1"


def build_series(values: list[float], last: datetime, step: timedelta = timedelta(days=1)) -> Series:
    """Ascending series whose final point sits at ``last``."""
    count = len(values)
    return [
        SeriesPoint(timestamp=last - step * (count - 1 - i), value=float(v))
        for i, v in enumerate(values)
    ]


class FakeSource(MetricDiscovery, SeriesReader):
    """In-memory discovery and series reader.

    ``data`` holds every point for a metric; reads return the points inside
    the requested window, so day and baseline reads both come from it.
    """

    def __init__(
        self,
        specs: list[MetricSpec] | None = None,
        data: dict[str, Series] | None = None,
        failing_metrics: set[str] | None = None,
        discover_error: Exception | None = None,
    ) -> None:
        self.specs = specs or []
        self.data = data or {}
        self.failing_metrics = failing_metrics or set()
        self.discover_error = discover_error
        self.discover_calls: list[tuple[str, date, str]] = []
        self.read_calls: list[tuple[str, str, Window]] = []

    async def discover(self, user_id, local_date, timezone):
        self.discover_calls.append((user_id, local_date, timezone))
        if self.discover_error is not None:
            raise self.discover_error
        return DiscoveryResult(
            specs=list(self.specs),
            counts={spec.id: len(self.data.get(spec.id, [])) for spec in self.specs},
        )

    async def read_series(self, user_id, spec, window):
        self.read_calls.append((user_id, spec.id, window))
        if spec.id in self.failing_metrics:
            raise DataSourceUnavailableError("read_series", ConnectionError("refused"))
        return [p for p in self.data.get(spec.id, []) if window.contains(p.timestamp)]


@pytest.fixture
def window() -> Window:
    """Window for the test day in Perth (UTC+8, no DST)."""
    return resolve_window(LOCAL_DATE, TIMEZONE)


@pytest.fixture
def day_end(window) -> datetime:
    """A timestamp one hour before the window closes."""
    return window.end - timedelta(hours=1)


@pytest.fixture
def make_context(window):
    """Factory for rule contexts on the test day."""

    def _make(
        metric_id: str,
        family: Family,
        history: Series | None = None,
    ) -> RuleContext:
        return RuleContext(
            user_id=USER_ID,
            spec=MetricSpec(id=metric_id, family=family),
            window=window,
            history=history or [],
        )

    return _make


@pytest.fixture
def insight_settings() -> InsightSettings:
    """Insight settings with defaults, independent of the environment."""
    return InsightSettings(
        include_all=False,
        dynamic_discovery=False,
        max_per_day=12,
        topk_per_family=3,
        debug=False,
        baseline_days=14,
        max_concurrent_metrics=4,
        default_timezone=TIMEZONE,
        family_weights={},
    )


@pytest.fixture
def store(tmp_path) -> InsightStore:
    """SQLite insight store in a temporary directory."""
    return InsightStore(tmp_path / "insights.db")

"""Data source interfaces used by the insight engine."""

from abc import ABC, abstractmethod
from datetime import date

from ..models import DiscoveryResult, MetricSpec, Series, Window


class MetricDiscovery(ABC):
    """Finds the metrics that have data for a user on a local date."""

    @abstractmethod
    async def discover(
        self, user_id: str, local_date: str | date, timezone: str
    ) -> DiscoveryResult:
        """Return the metric specs with data for the day.

        An empty result is normal. Implementations raise
        ``DataSourceUnavailableError`` when the backing store cannot be reached.
        """


class SeriesReader(ABC):
    """Reads one metric's observations inside a window."""

    @abstractmethod
    async def read_series(self, user_id: str, spec: MetricSpec, window: Window) -> Series:
        """Return the observations ordered ascending by timestamp.

        An empty series is normal. Implementations raise
        ``DataSourceUnavailableError`` when the backing store cannot be reached.
        """


__all__ = ["MetricDiscovery", "SeriesReader"]

"""InfluxDB-backed metric discovery and series reads."""

import asyncio
import math
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

import aiohttp
import structlog
from influxdb_client.client.exceptions import InfluxDBError
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync
from influxdb_client.rest import ApiException

from ..config import InfluxDBSettings, InsightSettings
from ..errors import DataSourceUnavailableError
from ..models import DiscoveryResult, MetricSpec, Series, SeriesPoint, Window
from ..registry import MetricCatalog
from ..window import resolve_window
from . import MetricDiscovery, SeriesReader

logger = structlog.get_logger(__name__)

DYNAMIC_MEASUREMENT = "other"
DYNAMIC_TAG = "metric_type"

# Record columns that are not tags
_RESERVED_COLUMNS = frozenset(
    {"_time", "_start", "_stop", "_measurement", "_field", "_value", "result", "table"}
)


def _flux_string(value: str) -> str:
    """Quote a value as a Flux string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _rfc3339(ts: datetime) -> str:
    return ts.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _as_float(value: Any) -> float | None:
    """Numeric record value as float, None for anything else."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    result = float(value)
    if math.isnan(result) or math.isinf(result):
        return None
    return result


class InfluxMetricSource(MetricDiscovery, SeriesReader):
    """Discovers metrics and reads series from the ingest bucket.

    Curated metrics are located by measurement/field. Metrics in the generic
    ``other`` measurement are keyed by their ``metric_type`` tag and are only
    considered when dynamic discovery or include-all is enabled.
    """

    def __init__(
        self,
        settings: InfluxDBSettings,
        catalog: MetricCatalog | None = None,
        insight_settings: InsightSettings | None = None,
        client_factory: Callable[[], InfluxDBClientAsync] | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            settings: InfluxDB connection settings.
            catalog: Metric catalog; dynamic metrics are registered into it.
            insight_settings: Discovery flags (include_all, dynamic_discovery).
            client_factory: Builds a client per operation. Defaults to one
                configured from ``settings``.
        """
        self._settings = settings
        self._catalog = catalog or MetricCatalog()
        self._include_all = insight_settings.include_all if insight_settings else False
        self._dynamic = insight_settings.dynamic_discovery if insight_settings else False
        self._client_factory = client_factory or self._make_client

    @property
    def catalog(self) -> MetricCatalog:
        return self._catalog

    def _make_client(self) -> InfluxDBClientAsync:
        return InfluxDBClientAsync(
            url=self._settings.url,
            token=self._settings.token,
            org=self._settings.org,
        )

    def _user_filter(self, user_id: str) -> str:
        if not self._settings.user_tag:
            return ""
        return (
            f"\n    |> filter(fn: (r) => r[{_flux_string(self._settings.user_tag)}]"
            f" == {_flux_string(user_id)})"
        )

    def _range(self, window: Window) -> str:
        return (
            f"from(bucket: {_flux_string(self._settings.bucket)})\n"
            f"    |> range(start: {_rfc3339(window.start)}, stop: {_rfc3339(window.end)})"
        )

    async def _query(self, operation: str, flux: str) -> list[Any]:
        """Run a Flux query and return its records.

        Raises:
            DataSourceUnavailableError: On API, network, or timeout errors.
        """
        client = self._client_factory()
        try:
            query_api = client.query_api()
            tables = await asyncio.wait_for(
                query_api.query(flux),
                timeout=self._settings.query_timeout_seconds,
            )
            return [record for table in tables for record in table.records]
        except (ApiException, InfluxDBError, aiohttp.ClientError, OSError, TimeoutError) as e:
            logger.warning(
                "influx_query_failed",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise DataSourceUnavailableError(operation, e) from e
        finally:
            await client.close()

    def _curated_count_query(self, user_id: str, window: Window, specs: list[MetricSpec]) -> str:
        measurements = sorted({spec.measurement for spec in specs})
        predicate = " or ".join(f"r._measurement == {_flux_string(m)}" for m in measurements)
        return (
            f"{self._range(window)}\n"
            f"    |> filter(fn: (r) => {predicate})"
            f"{self._user_filter(user_id)}\n"
            '    |> group(columns: ["_measurement", "_field"])\n'
            "    |> count()"
        )

    def _dynamic_count_query(self, user_id: str, window: Window) -> str:
        return (
            f"{self._range(window)}\n"
            f"    |> filter(fn: (r) => r._measurement == {_flux_string(DYNAMIC_MEASUREMENT)})"
            f"{self._user_filter(user_id)}\n"
            f"    |> group(columns: [{_flux_string(DYNAMIC_TAG)}])\n"
            "    |> count()"
        )

    async def discover(
        self, user_id: str, local_date: str | date, timezone: str
    ) -> DiscoveryResult:
        """Return the catalog metrics (and, when enabled, dynamic ones) with data."""
        window = resolve_window(local_date, timezone)
        curated = [spec for spec in self._catalog.all() if not spec.is_dynamic]
        result = DiscoveryResult()

        field_counts: dict[tuple[str, str], int] = {}
        if curated:
            records = await self._query(
                "discover", self._curated_count_query(user_id, window, curated)
            )
            for record in records:
                key = (record.values.get("_measurement", ""), record.get_field())
                field_counts[key] = field_counts.get(key, 0) + int(record.get_value() or 0)

        for spec in curated:
            count = field_counts.get((spec.measurement, spec.field), 0)
            if count > 0 or self._include_all:
                result.specs.append(spec)
                result.counts[spec.id] = count

        if self._dynamic or self._include_all:
            records = await self._query("discover_dynamic", self._dynamic_count_query(user_id, window))
            type_counts: dict[str, int] = {}
            for record in records:
                metric_type = record.values.get(DYNAMIC_TAG)
                if not metric_type:
                    continue
                type_counts[metric_type] = type_counts.get(metric_type, 0) + int(
                    record.get_value() or 0
                )

            for metric_type in sorted(type_counts):
                count = type_counts[metric_type]
                if count <= 0:
                    continue
                existing = self._catalog.get(metric_type)
                if existing is not None and not existing.is_dynamic:
                    # Curated field already covers this id
                    logger.debug("dynamic_metric_shadowed", metric=metric_type)
                    continue
                spec = existing or self._catalog.register_dynamic(metric_type)
                result.specs.append(spec)
                result.counts[spec.id] = count

        logger.debug(
            "metrics_discovered",
            date=window.date_str,
            count=len(result.specs),
            dynamic=self._dynamic,
            include_all=self._include_all,
        )
        return result

    def _series_query(self, user_id: str, spec: MetricSpec, window: Window) -> str:
        parts = [
            self._range(window),
            f"    |> filter(fn: (r) => r._measurement == {_flux_string(spec.measurement)})",
            f"    |> filter(fn: (r) => r._field == {_flux_string(spec.field)})",
        ]
        if spec.is_dynamic:
            parts.append(
                f"    |> filter(fn: (r) => r.{DYNAMIC_TAG} == {_flux_string(spec.id)})"
            )
        query = "\n".join(parts) + self._user_filter(user_id)
        return query + '\n    |> group()\n    |> sort(columns: ["_time"])'

    async def read_series(self, user_id: str, spec: MetricSpec, window: Window) -> Series:
        """Read a metric's numeric points inside the window, oldest first."""
        records = await self._query("read_series", self._series_query(user_id, spec, window))

        points: Series = []
        dropped = 0
        for record in records:
            value = _as_float(record.get_value())
            timestamp = record.get_time()
            if value is None or timestamp is None:
                dropped += 1
                continue
            meta = {
                k: v
                for k, v in record.values.items()
                if k not in _RESERVED_COLUMNS and isinstance(v, str)
            }
            points.append(SeriesPoint(timestamp=timestamp, value=value, meta=meta))

        points.sort(key=lambda p: p.timestamp)
        if dropped:
            logger.debug("series_points_dropped", metric=spec.id, dropped=dropped)
        return points

"""Daily insight pipeline orchestration."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from enum import Enum

import structlog

from .config import InsightSettings
from .metrics import (
    CANDIDATES,
    METRIC_FAILURES,
    METRICS_EVALUATED,
    RUN_DURATION,
    RUNS,
    SELECTED,
)
from .models import (
    Evidence,
    Insight,
    InsightSummary,
    MetricSpec,
    PersistedInsight,
    RuleContext,
    Window,
    insight_id,
)
from .registry import FamilyRegistry
from .rules import RuleDispatcher
from .scoring import check_raw_scores, score_insights, severity_of
from .selection import select_insights
from .sources import MetricDiscovery, SeriesReader
from .store import InsightStore
from .tracing import get_tracer
from .types import RunStats
from .window import resolve_window

logger = structlog.get_logger(__name__)

ISSUER = "dynamic-engine"


class PipelineStage(str, Enum):
    """Stage of a single pipeline run."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    EVALUATING = "evaluating"
    SCORING = "scoring"
    SELECTING = "selecting"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunReport:
    """Progress and outcome of the most recent run."""

    local_date: str
    timezone: str
    stage: PipelineStage = PipelineStage.IDLE
    metrics_discovered: int = 0
    metrics_evaluated: int = 0
    metrics_failed: list[str] = field(default_factory=list)
    candidates: int = 0
    selected: int = 0
    duration_seconds: float = 0.0

    def to_stats(self) -> RunStats:
        return {
            "stage": self.stage.value,
            "metrics_discovered": self.metrics_discovered,
            "metrics_evaluated": self.metrics_evaluated,
            "metrics_failed": list(self.metrics_failed),
            "candidates": self.candidates,
            "selected": self.selected,
            "duration_seconds": round(self.duration_seconds, 4),
        }


class InsightEngine:
    """Computes, ranks, and stores one user's insights for one local day.

    Stages run in order: discover metrics, evaluate each metric's rule pack,
    apply family weights, de-duplicate and select under caps, then replace
    the day's stored set. A failure while evaluating one metric only drops
    that metric; discovery and persistence failures fail the whole run.

    Runs for different (user, date) pairs may share one engine concurrently.
    ``last_run`` then holds the report of the most recently started run
    only; it is a convenience for sequential callers such as the CLI.
    """

    def __init__(
        self,
        settings: InsightSettings,
        discovery: MetricDiscovery,
        reader: SeriesReader,
        store: InsightStore,
        registry: FamilyRegistry | None = None,
        dispatcher: RuleDispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Selection caps, baseline window, and concurrency bound.
            discovery: Finds metrics with data for the day.
            reader: Reads day and baseline series.
            store: Persists the selected set.
            registry: Family weights. Defaults to the built-in weights with
                ``settings.family_weights`` applied.
            dispatcher: Family -> rule pack lookup.
            clock: Source of ``created_at`` timestamps.
        """
        self._settings = settings
        self._discovery = discovery
        self._reader = reader
        self._store = store
        self._registry = registry or FamilyRegistry(settings.family_weights)
        self._dispatcher = dispatcher or RuleDispatcher()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._tracer = get_tracer()
        # Report of the most recently started run
        self.last_run: RunReport | None = None

    async def compute_daily_insights(
        self,
        user_id: str,
        local_date: str | date,
        timezone: str | None = None,
    ) -> list[InsightSummary]:
        """Run the full pipeline for one user and local date.

        Args:
            user_id: Opaque user identifier.
            local_date: Calendar date as ``YYYY-MM-DD``.
            timezone: IANA zone id; defaults to the configured zone.

        Returns:
            Summaries of the persisted insights, in selection order.

        Raises:
            InvalidDateError: If the date is malformed. Nothing is read.
            InvalidTimezoneError: If the zone is unknown. Nothing is read.
            DataSourceUnavailableError: If discovery fails. Nothing is written.
            PersistenceError: If the replace-day transaction fails.
        """
        tz = timezone or self._settings.default_timezone
        window = resolve_window(local_date, tz)

        report = RunReport(local_date=window.date_str, timezone=tz)
        self.last_run = report
        log = logger.bind(user_id=user_id, date=window.date_str, timezone=tz)
        started = time.perf_counter()

        with self._tracer.start_as_current_span("compute_daily_insights") as span:
            span.set_attribute("insights.date", window.date_str)
            span.set_attribute("insights.timezone", tz)
            try:
                summaries = await self._run(user_id, window, report, log)
            except BaseException:
                report.stage = PipelineStage.FAILED
                RUNS.labels(status="failed").inc()
                raise
            else:
                RUNS.labels(status="success").inc()
                span.set_attribute("insights.selected", report.selected)
            finally:
                report.duration_seconds = time.perf_counter() - started
                RUN_DURATION.observe(report.duration_seconds)
                span.set_attribute("insights.stage", report.stage.value)

        log.info("insights_computed", **report.to_stats())
        return summaries

    async def _run(
        self,
        user_id: str,
        window: Window,
        report: RunReport,
        log: structlog.stdlib.BoundLogger,
    ) -> list[InsightSummary]:
        report.stage = PipelineStage.DISCOVERING
        try:
            discovered = await self._discovery.discover(
                user_id, window.local_date, window.timezone
            )
        except Exception as e:
            log.error("discovery_failed", error_type=type(e).__name__, error=str(e))
            raise
        specs = discovered.specs
        report.metrics_discovered = len(specs)
        if self._settings.debug:
            log.debug("metrics_discovered", metrics=[spec.id for spec in specs])

        report.stage = PipelineStage.EVALUATING
        candidates = await self._evaluate_all(user_id, specs, window, report, log)
        report.candidates = len(candidates)
        for insight in candidates:
            CANDIDATES.labels(family=insight.family.value).inc()

        report.stage = PipelineStage.SCORING
        scored = score_insights(candidates, self._registry)

        report.stage = PipelineStage.SELECTING
        selected = select_insights(
            scored,
            max_total=self._settings.max_per_day,
            max_per_family=self._settings.topk_per_family,
        )
        report.selected = len(selected)
        log.info("insights_selected", candidates=len(scored), selected=len(selected))

        report.stage = PipelineStage.PERSISTING
        created_at = self._clock()
        rows = [self._to_persisted(user_id, window, insight, created_at) for insight in selected]
        try:
            await self._store.replace_day(user_id, window.date_str, rows)
        except Exception as e:
            log.error("persist_failed", error_type=type(e).__name__, error=str(e))
            raise

        for row in rows:
            SELECTED.labels(family=row.evidence.family.value).inc()
        report.stage = PipelineStage.DONE
        return [row.to_summary() for row in rows]

    async def _evaluate_all(
        self,
        user_id: str,
        specs: list[MetricSpec],
        window: Window,
        report: RunReport,
        log: structlog.stdlib.BoundLogger,
    ) -> list[Insight]:
        """Evaluate every metric under the concurrency bound.

        Results are merged in discovery order regardless of completion order.
        """
        semaphore = asyncio.Semaphore(self._settings.max_concurrent_metrics)

        async def bounded(spec: MetricSpec) -> list[Insight] | None:
            async with semaphore:
                return await self._evaluate_metric(user_id, spec, window, log)

        results = await asyncio.gather(*(bounded(spec) for spec in specs))

        candidates: list[Insight] = []
        for spec, result in zip(specs, results):
            if result is None:
                report.metrics_failed.append(spec.id)
                continue
            report.metrics_evaluated += 1
            candidates.extend(result)
        return candidates

    async def _evaluate_metric(
        self,
        user_id: str,
        spec: MetricSpec,
        window: Window,
        log: structlog.stdlib.BoundLogger,
    ) -> list[Insight] | None:
        """Evaluate one metric's rule pack.

        Returns:
            The metric's validated candidates, or None if evaluation failed.
        """
        try:
            series = await self._reader.read_series(user_id, spec, window)
            if not series:
                log.debug("metric_skipped_empty", metric=spec.id)
                return []

            history = await self._reader.read_series(
                user_id, spec, window.extend_back(self._settings.baseline_days)
            )
            context = RuleContext(user_id=user_id, spec=spec, window=window, history=history)
            pack = self._dispatcher.dispatch(spec.family)
            insights = [
                self._conform(context, insight, log)
                for insight in pack.generate(spec.id, series, context)
            ]
            check_raw_scores(insights)
        except Exception as e:
            METRIC_FAILURES.labels(error_type=type(e).__name__).inc()
            log.warning(
                "metric_evaluation_failed",
                metric=spec.id,
                family=spec.family.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        METRICS_EVALUATED.inc()
        if self._settings.debug:
            for insight in insights:
                log.debug(
                    "insight_fired",
                    metric=insight.metric,
                    rule=insight.rule,
                    score=insight.score,
                    explain=insight.explain,
                )
        return insights

    @staticmethod
    def _conform(
        context: RuleContext, insight: Insight, log: structlog.stdlib.BoundLogger
    ) -> Insight:
        """Force the insight's metric and family to match the producing spec.

        A rewritten insight gets a fresh id derived from the corrected metric.
        """
        spec = context.spec
        if insight.metric == spec.id and insight.family == spec.family:
            return insight
        log.warning(
            "insight_identity_mismatch",
            metric=spec.id,
            insight_metric=insight.metric,
            insight_family=str(insight.family),
        )
        return replace(
            insight,
            id=insight_id(context.user_id, context.window.date_str, spec.id, insight.rule),
            metric=spec.id,
            family=spec.family,
        )

    @staticmethod
    def _to_persisted(
        user_id: str, window: Window, insight: Insight, created_at: datetime
    ) -> PersistedInsight:
        raw = insight.score if insight.raw_score is None else insight.raw_score
        return PersistedInsight(
            id=insight.id,
            user_id=user_id,
            date=window.date_str,
            title=insight.title,
            message=insight.body,
            metric=insight.metric,
            severity=severity_of(insight.score),
            confidence=insight.score,
            evidence=Evidence(family=insight.family, raw_score=raw, rule_id=insight.id),
            score=insight.score,
            created_at=created_at,
            issued_by=ISSUER,
        )

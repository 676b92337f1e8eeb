"""Data models for metrics, series, and insights."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Literal
from zoneinfo import ZoneInfo

from .types import JSONObject


class Family(str, Enum):
    """Clinical or behavioral category of a metric."""

    CARDIO = "cardio"
    BLOOD_PRESSURE = "blood_pressure"
    SLEEP = "sleep"
    ACTIVITY = "activity"
    BODY_COMPOSITION = "body_composition"
    GLUCOSE = "glucose"
    BIOMARKER = "biomarker"
    RESPIRATORY = "respiratory"
    OTHER = "other"


class Severity(str, Enum):
    """Severity band derived from a weighted score."""

    NORMAL = "normal"
    NOTABLE = "notable"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"


@dataclass(frozen=True)
class MetricSpec:
    """A metric that can be discovered for a user/day.

    ``measurement`` and ``field`` locate the metric in the time-series store.
    Dynamically discovered metrics live in the ``other`` measurement and are
    keyed by their ``metric_type`` tag instead of a field.
    """

    id: str
    family: Family
    unit: str | None = None
    kind: Literal["instant", "interval", "value"] = "value"
    source: Literal["curated", "raw"] = "raw"
    measurement: str = "other"
    field: str = "value"
    preferred_agg: Literal["mean", "min", "max", "sum", "last"] = "mean"

    @property
    def is_dynamic(self) -> bool:
        """Whether the metric is keyed by the generic metric_type tag."""
        return self.measurement == "other"


@dataclass
class DiscoveryResult:
    """Metrics with data for one user/day."""

    specs: list[MetricSpec] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Window:
    """Half-open UTC interval ``[start, end)`` covering one local calendar day."""

    start: datetime
    end: datetime
    timezone: str
    local_date: date

    def contains(self, ts: datetime) -> bool:
        """Check whether a timestamp falls inside the window."""
        return self.start <= ts < self.end

    def extend_back(self, days: int) -> Window:
        """Return a window with the same end, starting ``days`` local days earlier."""
        if days <= 0:
            return self
        tz = ZoneInfo(self.timezone)
        first_day = self.local_date - timedelta(days=days)
        local_start = datetime.combine(first_day, datetime.min.time(), tzinfo=tz)
        return replace(self, start=local_start.astimezone(self.start.tzinfo))

    @property
    def date_str(self) -> str:
        return self.local_date.isoformat()


@dataclass(frozen=True)
class SeriesPoint:
    """Single observation inside a series."""

    timestamp: datetime
    value: float
    meta: JSONObject = field(default_factory=dict)


Series = list[SeriesPoint]


@dataclass(frozen=True)
class RuleContext:
    """Inputs available to a rule pack besides the day's series."""

    user_id: str
    spec: MetricSpec
    window: Window
    history: Series = field(default_factory=list)


@dataclass(frozen=True)
class Insight:
    """Candidate insight emitted by a rule pack.

    ``score`` is the raw relevance until the scorer replaces it with the
    family-weighted value and records the original in ``raw_score``.
    """

    id: str
    title: str
    body: str
    score: float
    tags: tuple[str, ...]
    family: Family
    metric: str
    explain: str
    local_date: str
    rule: str = ""
    raw_score: float | None = None

    def with_score(self, weighted: float) -> Insight:
        """Return a copy carrying the weighted score."""
        raw = self.score if self.raw_score is None else self.raw_score
        return replace(self, score=weighted, raw_score=raw)


def insight_id(user_id: str, local_date: str, metric: str, rule: str) -> str:
    """Stable identifier for one rule firing on one metric for one day."""
    return hashlib.sha256(f"{user_id}|{local_date}|{metric}|{rule}".encode()).hexdigest()[:16]


@dataclass(frozen=True)
class Evidence:
    """Machine-readable rationale stored with a persisted insight."""

    family: Family
    raw_score: float
    rule_id: str

    def to_dict(self) -> JSONObject:
        return {
            "family": self.family.value,
            "raw_score": self.raw_score,
            "rule_id": self.rule_id,
        }


@dataclass(frozen=True)
class PersistedInsight:
    """Stored form of a selected insight."""

    id: str
    user_id: str
    date: str
    title: str
    message: str
    metric: str
    severity: Severity
    confidence: float
    evidence: Evidence
    score: float
    created_at: datetime
    status: str = "active"
    issued_by: str = "dynamic-engine"

    def to_summary(self) -> InsightSummary:
        return InsightSummary(
            id=self.id,
            metric=self.metric,
            family=self.evidence.family,
            title=self.title,
            message=self.message,
            severity=self.severity,
            score=self.score,
        )


@dataclass(frozen=True)
class InsightSummary:
    """What callers of the pipeline get back for each persisted insight."""

    id: str
    metric: str
    family: Family
    title: str
    message: str
    severity: Severity
    score: float

    def to_dict(self) -> JSONObject:
        return {
            "id": self.id,
            "metric": self.metric,
            "family": self.family.value,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "score": round(self.score, 4),
        }

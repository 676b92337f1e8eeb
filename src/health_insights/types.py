"""Shared type aliases and typed dictionaries."""

from __future__ import annotations

from typing import TypeAlias, TypedDict

JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)
JSONObject: TypeAlias = dict[str, JSONValue]


class InsightRow(TypedDict):
    """Row shape of the daily_health_insights table."""

    id: str
    user_id: str
    date: str
    title: str
    message: str
    metric: str
    severity: str
    confidence: float
    evidence: str
    status: str
    score: float
    issued_by: str
    created_at: str


class RunStats(TypedDict):
    """Summary of one pipeline run, as logged and exposed by the engine."""

    stage: str
    metrics_discovered: int
    metrics_evaluated: int
    metrics_failed: list[str]
    candidates: int
    selected: int
    duration_seconds: float

"""Daily health insights engine.

A batch pipeline that reads one user's health time series for a local
calendar day, runs per-family rule packs over each metric, weights and
ranks the resulting insights, and stores a small diversified set per day.

Modules:
    config: Configuration management using pydantic-settings
    engine: Pipeline orchestration (discover, evaluate, score, select, persist)
    rules: Per-family rule packs and their dispatch
    sources: Metric discovery and series reads from InfluxDB
    store: SQLite persistence of the daily insight set

Example:
    Compute today's insights for a user::

        $ uv run health-insights compute --user alice

    Recompute a range of days::

        $ uv run health-insights backfill --user alice --start 2024-01-01 --end 2024-01-15
"""

__version__ = "0.1.0"

from .config import Settings, get_settings
from .engine import InsightEngine, PipelineStage, RunReport
from .models import Family, InsightSummary, Severity

__all__ = [
    "Family",
    "InsightEngine",
    "InsightSummary",
    "PipelineStage",
    "RunReport",
    "Settings",
    "Severity",
    "get_settings",
    "__version__",
]

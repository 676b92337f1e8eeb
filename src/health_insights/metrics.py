"""Prometheus metrics definitions for the insight engine."""

from prometheus_client import Counter, Histogram

# -- Runs --
RUNS = Counter(
    "health_insights_runs_total",
    "Total daily insight runs",
    ["status"],
)
RUN_DURATION = Histogram(
    "health_insights_run_duration_seconds",
    "Daily insight run latency",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# -- Metric evaluation --
METRICS_EVALUATED = Counter(
    "health_insights_metrics_evaluated_total",
    "Total metrics evaluated by rule packs",
)
METRIC_FAILURES = Counter(
    "health_insights_metric_failures_total",
    "Total metrics whose evaluation failed",
    ["error_type"],
)

# -- Insights --
CANDIDATES = Counter(
    "health_insights_candidates_total",
    "Total candidate insights generated",
    ["family"],
)
SELECTED = Counter(
    "health_insights_selected_total",
    "Total insights selected and persisted",
    ["family"],
)

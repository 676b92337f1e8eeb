"""Statistical primitives shared by the rule packs.

All functions take a series ordered by timestamp and never raise on short
input; they return a neutral result with an explanatory ``explain`` string
instead.
"""

import math
from dataclasses import dataclass
from typing import Literal

from .models import Series

Direction = Literal["up", "down", "stable"]
Magnitude = Literal["strong", "moderate", "weak"]

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class RollingMean:
    value: float
    count: int
    explain: str


@dataclass(frozen=True)
class ZScore:
    z: float
    baseline_mean: float
    baseline_std: float
    latest_value: float
    explain: str


@dataclass(frozen=True)
class Trend:
    slope: float  # units per day
    direction: Direction
    magnitude: Magnitude
    r2: float
    explain: str


@dataclass(frozen=True)
class ThresholdCross:
    crossed: bool
    direction: Literal["above", "below", "within"]
    value: float
    threshold: float | None
    explain: str


@dataclass(frozen=True)
class DayChange:
    absolute_change: float
    percent_change: float
    direction: Direction
    explain: str


@dataclass(frozen=True)
class Stats:
    min: float
    max: float
    mean: float
    median: float
    std: float
    count: int


def rolling_mean(series: Series, window_days: int = 7) -> RollingMean:
    """Mean of all values in the series."""
    if not series:
        return RollingMean(value=0.0, count=0, explain="No data available")
    mean = sum(p.value for p in series) / len(series)
    return RollingMean(
        value=mean,
        count=len(series),
        explain=f"{window_days}d mean: {mean:.2f} (n={len(series)})",
    )


def z_score_latest(series: Series) -> ZScore:
    """Z-score of the latest value against all earlier values."""
    if len(series) < 2:
        return ZScore(
            z=0.0,
            baseline_mean=0.0,
            baseline_std=0.0,
            latest_value=series[-1].value if series else 0.0,
            explain="Insufficient data for z-score",
        )

    baseline = [p.value for p in series[:-1]]
    latest = series[-1].value
    mean = sum(baseline) / len(baseline)
    std = math.sqrt(sum((v - mean) ** 2 for v in baseline) / len(baseline))
    z = (latest - mean) / std if std > 0 else 0.0

    if abs(z) > 2:
        label = "extreme"
    elif abs(z) > 1:
        label = "notable"
    else:
        label = "normal"

    return ZScore(
        z=z,
        baseline_mean=mean,
        baseline_std=std,
        latest_value=latest,
        explain=f"z={z:.2f} ({label}), baseline mean={mean:.2f} std={std:.2f}",
    )


def trend_slope(series: Series) -> Trend:
    """Least-squares slope per day with goodness of fit."""
    if len(series) < 3:
        return Trend(
            slope=0.0,
            direction="stable",
            magnitude="weak",
            r2=0.0,
            explain="Insufficient data for trend",
        )

    base = series[0].timestamp
    xs = [(p.timestamp - base).total_seconds() / SECONDS_PER_DAY for p in series]
    ys = [p.value for p in series]
    n = len(series)

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        # All points share one timestamp
        return Trend(
            slope=0.0,
            direction="stable",
            magnitude="weak",
            r2=0.0,
            explain="No time spread for trend",
        )

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for y in ys)
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, ys))
    r2 = 1 - ss_residual / ss_total if ss_total > 0 else 0.0

    direction: Direction
    if slope > 0.1:
        direction = "up"
    elif slope < -0.1:
        direction = "down"
    else:
        direction = "stable"

    magnitude: Magnitude = "weak"
    if abs(slope) > 1 and r2 > 0.6:
        magnitude = "strong"
    elif abs(slope) > 0.5 and r2 > 0.4:
        magnitude = "moderate"

    return Trend(
        slope=slope,
        direction=direction,
        magnitude=magnitude,
        r2=r2,
        explain=f"slope={slope:.3f}/day, {direction} {magnitude} (R2={r2:.2f})",
    )


def threshold_cross(
    series: Series,
    low: float | None = None,
    high: float | None = None,
) -> ThresholdCross:
    """Check whether the latest value is strictly outside ``[low, high]``."""
    if not series:
        return ThresholdCross(
            crossed=False, direction="within", value=0.0, threshold=None, explain="No data"
        )

    latest = series[-1].value
    if high is not None and latest > high:
        return ThresholdCross(
            crossed=True,
            direction="above",
            value=latest,
            threshold=high,
            explain=f"{latest:.1f} > {high:g} (high threshold)",
        )
    if low is not None and latest < low:
        return ThresholdCross(
            crossed=True,
            direction="below",
            value=latest,
            threshold=low,
            explain=f"{latest:.1f} < {low:g} (low threshold)",
        )
    return ThresholdCross(
        crossed=False,
        direction="within",
        value=latest,
        threshold=None,
        explain=f"{latest:.1f} within range",
    )


def day_change(series: Series) -> DayChange:
    """Change between the last two observations."""
    if len(series) < 2:
        return DayChange(
            absolute_change=0.0, percent_change=0.0, direction="stable", explain="Insufficient data"
        )

    prev = series[-2].value
    curr = series[-1].value
    absolute = curr - prev
    percent = absolute / prev * 100 if prev != 0 else 0.0

    direction: Direction
    if absolute > 0:
        direction = "up"
    elif absolute < 0:
        direction = "down"
    else:
        direction = "stable"

    return DayChange(
        absolute_change=absolute,
        percent_change=percent,
        direction=direction,
        explain=f"{absolute:+.1f} ({percent:+.1f}%)",
    )


def get_stats(series: Series) -> Stats:
    """Descriptive statistics of the series values."""
    if not series:
        return Stats(min=0.0, max=0.0, mean=0.0, median=0.0, std=0.0, count=0)

    values = sorted(p.value for p in series)
    count = len(values)
    mean = sum(values) / count
    mid = count // 2
    median = values[mid] if count % 2 else (values[mid - 1] + values[mid]) / 2
    std = math.sqrt(sum((v - mean) ** 2 for v in values) / count)

    return Stats(min=values[0], max=values[-1], mean=mean, median=median, std=std, count=count)

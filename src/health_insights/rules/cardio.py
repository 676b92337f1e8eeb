"""Cardiovascular rule pack: heart rate, resting heart rate, HRV."""

from ..models import Family, Insight, RuleContext, Series
from ..primitives import trend_slope, z_score_latest
from .base import RulePack

HIGH_HEART_RATE_BPM = 120


class CardioRules(RulePack):
    """Rules for heart rate, resting heart rate, and HRV."""

    families = (Family.CARDIO,)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        if not series:
            return insights

        lower = metric_id.lower()
        history = context.history or series

        if "hrv" in lower or "heart_rate_variability" in lower:
            z = z_score_latest(history)
            if z.z < -1.0:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "low_hrv",
                        title="HRV Below Baseline",
                        body=(
                            f"Your heart rate variability is {abs(z.z):.1f} standard deviations "
                            f"below your recent average ({z.latest_value:.0f}ms vs "
                            f"{z.baseline_mean:.0f}ms). This may indicate insufficient recovery "
                            "or elevated stress."
                        ),
                        score=min(1.0, abs(z.z) / 3),
                        tags=("hrv", "recovery", "stress", "alert"),
                        explain=z.explain,
                    )
                )
            if z.z > 1.5:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "high_hrv",
                        title="Excellent Recovery",
                        body=(
                            f"Your HRV is {z.z:.1f} standard deviations above baseline "
                            f"({z.latest_value:.0f}ms). Your body is well-recovered and ready "
                            "for intense training."
                        ),
                        score=0.6,
                        tags=("hrv", "recovery", "positive"),
                        explain=z.explain,
                    )
                )

        if "resting" in lower and "heart" in lower:
            z = z_score_latest(history)
            trend = trend_slope(history[-7:])
            if z.z > 1.0:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "elevated_rhr",
                        title="Elevated Resting Heart Rate",
                        body=(
                            f"Your resting heart rate is {z.z:.1f} standard deviations above "
                            f"baseline ({z.latest_value:.0f} vs {z.baseline_mean:.0f} bpm). "
                            "This may indicate fatigue, stress, illness, or overtraining."
                        ),
                        score=min(1.0, z.z / 2.5),
                        tags=("rhr", "fatigue", "stress", "alert"),
                        explain=z.explain,
                    )
                )
            if trend.direction == "down" and trend.magnitude != "weak":
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "improving_rhr",
                        title="Improving Cardiovascular Fitness",
                        body=(
                            f"Your resting heart rate is trending down ({trend.slope:.1f} "
                            "bpm/day over recent readings), suggesting improved "
                            "cardiovascular fitness."
                        ),
                        score=0.5,
                        tags=("rhr", "fitness", "trend", "positive"),
                        explain=trend.explain,
                    )
                )

        if lower == "heart_rate":
            latest = series[-1].value
            if latest > HIGH_HEART_RATE_BPM:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "high_hr",
                        title="Elevated Heart Rate Detected",
                        body=(
                            f"Heart rate of {latest:.0f} bpm detected. If at rest, this may "
                            "indicate stress, anxiety, or other issues."
                        ),
                        score=0.7,
                        tags=("heart_rate", "elevated", "alert"),
                        explain=f"Latest: {latest:.0f} bpm",
                    )
                )

        return insights

"""Activity rule pack."""

from ..models import Family, Insight, RuleContext, Series
from ..primitives import trend_slope, z_score_latest
from .base import RulePack


class ActivityRules(RulePack):
    """Step count and active energy rules against the personal baseline."""

    families = (Family.ACTIVITY,)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        if not series:
            return insights

        latest = series[-1].value
        history = context.history or series

        if "step" in metric_id:
            z = z_score_latest(history)
            if z.z < -1.0:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "low_steps",
                        title="Below Average Activity",
                        body=(
                            f"Your steps today ({latest:.0f}) are {abs(z.z):.1f} standard "
                            f"deviations below your recent average ({z.baseline_mean:.0f}). "
                            "Consider adding a walk or light activity."
                        ),
                        score=min(0.7, abs(z.z) / 2),
                        tags=("steps", "activity", "low"),
                        explain=z.explain,
                    )
                )
            if z.z > 1.5:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "high_steps",
                        title="Exceptional Activity Day",
                        body=(
                            f"Great job! You logged {latest:.0f} steps today, {z.z:.1f} "
                            "standard deviations above your average. Keep up the momentum!"
                        ),
                        score=0.5,
                        tags=("steps", "activity", "positive"),
                        explain=z.explain,
                    )
                )

            trend = trend_slope(history[-7:])
            if trend.direction == "down" and trend.magnitude != "weak":
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "declining_trend",
                        title="Activity Trending Down",
                        body=(
                            "Your daily steps have been declining over the past week "
                            f"({trend.slope:.0f} steps/day). Consider setting a daily step goal."
                        ),
                        score=0.6,
                        tags=("steps", "activity", "trend"),
                        explain=trend.explain,
                    )
                )

        if "active_energy" in metric_id:
            z = z_score_latest(history)
            if z.z < -1.0:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "low_energy",
                        title="Low Energy Expenditure",
                        body=(
                            f"Active energy burn ({latest:.0f} kcal) is {abs(z.z):.1f} standard "
                            "deviations below your average. Increase activity intensity or "
                            "duration."
                        ),
                        score=0.6,
                        tags=("energy", "activity", "low"),
                        explain=z.explain,
                    )
                )

        return insights

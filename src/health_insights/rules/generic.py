"""Generic rule pack for unrecognized or miscellaneous metrics."""

from ..models import Family, Insight, RuleContext, Series
from ..primitives import trend_slope, z_score_latest
from .base import RulePack, format_metric_name


class GenericRules(RulePack):
    """Fallback pack: outlier and trend detection using only primitives."""

    families = (Family.OTHER, Family.RESPIRATORY)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        history = context.history
        if not series or len(history) < 3:
            return insights

        name = format_metric_name(metric_id)

        z = z_score_latest(history)
        if abs(z.z) > 2.0:
            side = "above" if z.z > 0 else "below"
            insights.append(
                self._insight(
                    context,
                    metric_id,
                    "outlier",
                    title=f"{name} Outlier Detected",
                    body=(
                        f"This metric is {abs(z.z):.1f} standard deviations {side} your recent "
                        f"average ({z.latest_value:.1f} vs {z.baseline_mean:.1f})."
                    ),
                    score=min(0.7, abs(z.z) / 4),
                    tags=("exploratory", "outlier"),
                    explain=z.explain,
                )
            )

        if len(history) >= 5:
            trend = trend_slope(history[-7:])
            if trend.magnitude == "strong":
                heading = "Up" if trend.direction == "up" else "Down"
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "trend",
                        title=f"{name} Trending {heading}",
                        body=(
                            f"Strong {'upward' if trend.direction == 'up' else 'downward'} trend "
                            f"detected over the past week (slope: {trend.slope:.2f}/day)."
                        ),
                        score=0.5,
                        tags=("exploratory", "trend"),
                        explain=trend.explain,
                    )
                )

        return insights

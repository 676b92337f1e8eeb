"""Body composition rule pack."""

from ..models import Family, Insight, RuleContext, Series
from ..primitives import day_change, trend_slope
from .base import RulePack, recent

TREND_DAYS = 7


class BodyCompositionRules(RulePack):
    """Weight, lean mass, and body fat rules."""

    families = (Family.BODY_COMPOSITION,)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        if not series:
            return insights

        week = recent(context.history, context, TREND_DAYS) or series

        if "weight" in metric_id and "body" not in metric_id:
            trend = trend_slope(week)
            significant = trend.magnitude != "weak" and abs(trend.slope) > 0.2
            weekly_change = abs(trend.slope * TREND_DAYS)

            if trend.direction == "down" and significant:
                rapid = weekly_change > 1
                advice = (
                    "Rapid weight loss - ensure adequate nutrition." if rapid else "Steady progress!"
                )
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "weight_loss",
                        title="Weight Loss Trend",
                        body=(
                            f"Your weight is trending down ({trend.slope:.2f} kg/day over "
                            f"{TREND_DAYS} days). {advice}"
                        ),
                        score=0.7 if rapid else 0.5,
                        tags=("weight", "trend", "body_comp"),
                        explain=trend.explain,
                    )
                )
            if trend.direction == "up" and significant:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "weight_gain",
                        title="Weight Gain Trend",
                        body=(
                            f"Your weight is trending up ({trend.slope:.2f} kg/day over "
                            f"{TREND_DAYS} days). Monitor if this aligns with your goals."
                        ),
                        score=0.6,
                        tags=("weight", "trend", "body_comp"),
                        explain=trend.explain,
                    )
                )

        if "lean" in metric_id and len(series) >= 2:
            change = day_change(series)
            if abs(change.absolute_change) > 0.5:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "lean_mass_fluctuation",
                        title="Lean Mass Fluctuation",
                        body=(
                            f"Lean body mass changed by {change.absolute_change:.1f} kg. Large "
                            "daily changes may indicate measurement error or water retention."
                        ),
                        score=0.5,
                        tags=("lean_mass", "measurement"),
                        explain=change.explain,
                    )
                )

        if "fat_percentage" in metric_id or "body_fat" in metric_id:
            trend = trend_slope(week)
            if trend.direction == "down" and trend.magnitude != "weak":
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "fat_loss",
                        title="Body Fat Decreasing",
                        body=(
                            "Body fat percentage is trending down over the past week. "
                            "Consistent progress!"
                        ),
                        score=0.6,
                        tags=("body_fat", "trend", "positive"),
                        explain=trend.explain,
                    )
                )

        return insights

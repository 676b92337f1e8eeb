"""Sleep rule pack."""

from ..models import Family, Insight, RuleContext, Series
from .base import RulePack

# Stage percentages are taken against a nominal 8h night
NOMINAL_SLEEP_MIN = 480


class SleepRules(RulePack):
    """Duration, stage composition, fragmentation, and sleep score rules."""

    families = (Family.SLEEP,)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        if not series:
            return insights

        latest = series[-1].value

        if "in_bed" in metric_id:
            hours = latest / 60
            if hours < 6.5:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "insufficient_sleep",
                        title="Insufficient Sleep Duration",
                        body=(
                            f"You slept {hours:.1f} hours last night, which is below the "
                            "recommended 7-9 hours. Prioritize sleep for optimal recovery "
                            "and health."
                        ),
                        score=min(0.9, (7 - hours) / 3),
                        tags=("sleep", "duration", "alert"),
                        explain=f"Total: {hours:.1f}h ({latest:.0f} min)",
                    )
                )
            elif hours > 9.5:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "excessive_sleep",
                        title="Unusually Long Sleep",
                        body=(
                            f"You slept {hours:.1f} hours, which is longer than typical. "
                            "This may indicate recovery need or other factors."
                        ),
                        score=0.4,
                        tags=("sleep", "duration"),
                        explain=f"Total: {hours:.1f}h",
                    )
                )

        if "rem" in metric_id:
            pct = latest / NOMINAL_SLEEP_MIN * 100
            if pct < 15:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "low_rem",
                        title="Low REM Sleep",
                        body=(
                            f"REM sleep was {pct:.1f}% of total sleep ({latest:.0f} min), "
                            "below the healthy 20-25% range. REM is crucial for memory and mood."
                        ),
                        score=0.6,
                        tags=("sleep", "rem", "quality"),
                        explain=f"REM: {latest:.0f} min ({pct:.1f}%)",
                    )
                )

        if "deep" in metric_id:
            pct = latest / NOMINAL_SLEEP_MIN * 100
            if pct < 10:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "low_deep",
                        title="Low Deep Sleep",
                        body=(
                            f"Deep sleep was {pct:.1f}% of total sleep ({latest:.0f} min), "
                            "below the healthy 13-23% range. Deep sleep is essential for "
                            "physical recovery."
                        ),
                        score=0.6,
                        tags=("sleep", "deep", "quality"),
                        explain=f"Deep: {latest:.0f} min ({pct:.1f}%)",
                    )
                )

        if "awake" in metric_id and latest > 60:
            insights.append(
                self._insight(
                    context,
                    metric_id,
                    "fragmented_sleep",
                    title="Fragmented Sleep",
                    body=(
                        f"You were awake for {latest:.0f} minutes during the night. Frequent "
                        "awakenings can reduce sleep quality and recovery."
                    ),
                    score=min(0.7, latest / 90),
                    tags=("sleep", "fragmentation", "quality"),
                    explain=f"Awake: {latest:.0f} min",
                )
            )

        if metric_id == "sleep_score":
            if latest < 70:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "poor_sleep_score",
                        title="Poor Sleep Quality",
                        body=(
                            f"Your sleep score was {latest:.0f}/100, indicating suboptimal "
                            "sleep quality. Focus on sleep hygiene and consistent bedtime."
                        ),
                        score=max(0.0, (100 - latest) / 100),
                        tags=("sleep", "quality", "score"),
                        explain=f"Score: {latest:.0f}/100",
                    )
                )
            elif latest >= 85:
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "excellent_sleep",
                        title="Excellent Sleep Quality",
                        body=(
                            f"Your sleep score was {latest:.0f}/100, indicating excellent "
                            "sleep quality. Great job!"
                        ),
                        score=0.5,
                        tags=("sleep", "quality", "positive"),
                        explain=f"Score: {latest:.0f}/100",
                    )
                )

        return insights

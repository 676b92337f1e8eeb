"""Blood pressure rule pack."""

from ..models import Family, Insight, RuleContext, Series
from ..primitives import threshold_cross, trend_slope
from .base import RulePack


class BloodPressureRules(RulePack):
    """Hypertension staging and trend rules for systolic/diastolic readings."""

    families = (Family.BLOOD_PRESSURE,)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        if not series:
            return []
        if "systolic" in metric_id:
            return self._systolic(metric_id, series, context)
        if "diastolic" in metric_id:
            return self._diastolic(metric_id, series, context)
        return []

    def _systolic(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        latest = series[-1].value
        threshold = threshold_cross(series, high=140)

        if threshold.crossed:
            insights.append(
                self._insight(
                    context,
                    metric_id,
                    "hypertension_stage2",
                    title="High Blood Pressure - Stage 2",
                    body=(
                        f"Systolic pressure of {latest:.0f} mmHg exceeds 140 mmHg "
                        "(Stage 2 Hypertension). Consult your healthcare provider."
                    ),
                    score=0.95,
                    tags=("bp", "hypertension", "critical"),
                    explain=threshold.explain,
                )
            )
        elif latest >= 130:
            insights.append(
                self._insight(
                    context,
                    metric_id,
                    "hypertension_stage1",
                    title="Elevated Blood Pressure - Stage 1",
                    body=(
                        f"Systolic pressure of {latest:.0f} mmHg is in the Stage 1 "
                        "Hypertension range (130-139 mmHg). Consider lifestyle modifications "
                        "and monitor regularly."
                    ),
                    score=0.75,
                    tags=("bp", "hypertension", "alert"),
                    explain=f"Systolic: {latest:.0f} mmHg",
                )
            )
        elif latest >= 120:
            insights.append(
                self._insight(
                    context,
                    metric_id,
                    "elevated_bp",
                    title="Elevated Blood Pressure",
                    body=(
                        f"Systolic pressure of {latest:.0f} mmHg is elevated (120-129 mmHg). "
                        "Focus on diet, exercise, and stress management."
                    ),
                    score=0.5,
                    tags=("bp", "elevated"),
                    explain=f"Systolic: {latest:.0f} mmHg",
                )
            )

        if len(series) >= 3:
            trend = trend_slope(series)
            if trend.direction == "up" and trend.magnitude != "weak":
                insights.append(
                    self._insight(
                        context,
                        metric_id,
                        "rising_trend",
                        title="Blood Pressure Trending Up",
                        body=(
                            "Your systolic blood pressure has been trending upward "
                            f"({trend.slope:+.1f} mmHg/day). Monitor closely and consider "
                            "lifestyle interventions."
                        ),
                        score=0.6,
                        tags=("bp", "trend", "alert"),
                        explain=trend.explain,
                    )
                )

        return insights

    def _diastolic(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        latest = series[-1].value
        threshold = threshold_cross(series, high=90)

        if threshold.crossed:
            return [
                self._insight(
                    context,
                    metric_id,
                    "hypertension_stage2",
                    title="High Diastolic Pressure - Stage 2",
                    body=(
                        f"Diastolic pressure of {latest:.0f} mmHg exceeds 90 mmHg "
                        "(Stage 2 Hypertension). Consult your healthcare provider."
                    ),
                    score=0.95,
                    tags=("bp", "hypertension", "critical"),
                    explain=threshold.explain,
                )
            ]
        if latest >= 80:
            return [
                self._insight(
                    context,
                    metric_id,
                    "hypertension_stage1",
                    title="Elevated Diastolic Pressure - Stage 1",
                    body=(
                        f"Diastolic pressure of {latest:.0f} mmHg is in the Stage 1 "
                        "Hypertension range (80-89 mmHg). Consider lifestyle modifications."
                    ),
                    score=0.75,
                    tags=("bp", "hypertension", "alert"),
                    explain=f"Diastolic: {latest:.0f} mmHg",
                )
            ]
        return []

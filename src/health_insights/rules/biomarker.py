"""Lab biomarker and glucose rule pack."""

from dataclasses import dataclass

from ..models import Family, Insight, RuleContext, Series
from ..primitives import trend_slope
from .base import RulePack, format_metric_name


@dataclass(frozen=True)
class ReferenceRange:
    """Reference (and optionally optimal) range for one biomarker."""

    name: str
    unit: str
    low: float | None = None
    high: float | None = None
    optimal: tuple[float, float] | None = None


BIOMARKER_RANGES: dict[str, ReferenceRange] = {
    # Lipid panel
    "total-cholesterol": ReferenceRange("Total Cholesterol", "mg/dL", high=200, optimal=(125, 200)),
    "ldl-cholesterol": ReferenceRange("LDL Cholesterol", "mg/dL", high=100, optimal=(0, 100)),
    "hdl-cholesterol": ReferenceRange("HDL Cholesterol", "mg/dL", low=40, optimal=(60, 100)),
    "triglycerides": ReferenceRange("Triglycerides", "mg/dL", high=150, optimal=(0, 150)),
    "non-hdl-cholesterol": ReferenceRange("Non-HDL Cholesterol", "mg/dL", high=130),
    # Liver function
    "alt": ReferenceRange("ALT", "U/L", high=40),
    "ast": ReferenceRange("AST", "U/L", high=40),
    "alkaline-phosphatase": ReferenceRange("Alkaline Phosphatase", "U/L", low=30, high=120),
    "gamma-gt": ReferenceRange("Gamma-GT", "U/L", high=60),
    "total-bilirubin": ReferenceRange("Total Bilirubin", "mg/dL", high=1.2),
    "albumin": ReferenceRange("Albumin", "g/dL", low=3.5, high=5.5),
    # Kidney function
    "creatinine": ReferenceRange("Creatinine", "mg/dL", low=0.7, high=1.3),
    "egfr": ReferenceRange("eGFR", "mL/min/1.73m2", low=60),
    "bun": ReferenceRange("BUN", "mg/dL", low=7, high=20),
    # Blood counts
    "wbc": ReferenceRange("White Blood Cells", "x10^9/L", low=4.5, high=11.0),
    "rbc": ReferenceRange("Red Blood Cells", "x10^12/L", low=4.5, high=5.9),
    "haemoglobin": ReferenceRange("Hemoglobin", "g/dL", low=13.5, high=17.5),
    "hct": ReferenceRange("Hematocrit", "%", low=40, high=52),
    "platelets": ReferenceRange("Platelets", "x10^9/L", low=150, high=400),
    "neutrophils": ReferenceRange("Neutrophils", "%", low=40, high=70),
    "lymphocytes": ReferenceRange("Lymphocytes", "%", low=20, high=40),
    "monocytes": ReferenceRange("Monocytes", "%", low=2, high=8),
    "eosinophils": ReferenceRange("Eosinophils", "%", high=5),
    # Thyroid
    "tsh": ReferenceRange("TSH", "mIU/L", low=0.4, high=4.0),
    "t3": ReferenceRange("T3", "ng/dL", low=80, high=200),
    "t4": ReferenceRange("T4", "ug/dL", low=4.5, high=12.0),
    "free-t3": ReferenceRange("Free T3", "pg/mL", low=2.3, high=4.2),
    "free-t4": ReferenceRange("Free T4", "ng/dL", low=0.8, high=1.8),
    # Hormones
    "testosterone": ReferenceRange("Testosterone", "ng/dL", low=300, high=1000),
    "estradiol": ReferenceRange("Estradiol", "pg/mL", low=10, high=40),
    "cortisol": ReferenceRange("Cortisol", "ug/dL", low=6, high=23),
    "dhea-sulphate": ReferenceRange("DHEA-S", "ug/dL", low=80, high=560),
    "shbg": ReferenceRange("SHBG", "nmol/L", low=10, high=57),
    # Vitamins & minerals
    "vitamin-d": ReferenceRange("Vitamin D", "ng/mL", low=30, optimal=(40, 60)),
    "vitamin-b12": ReferenceRange("Vitamin B12", "pg/mL", low=200),
    "folate": ReferenceRange("Folate", "ng/mL", low=3),
    "iron": ReferenceRange("Iron", "ug/dL", low=60, high=170),
    "ferritin": ReferenceRange("Ferritin", "ng/mL", low=30, high=200),
    "magnesium": ReferenceRange("Magnesium", "mg/dL", low=1.7, high=2.2),
    "calcium": ReferenceRange("Calcium", "mg/dL", low=8.5, high=10.5),
    "phosphate": ReferenceRange("Phosphate", "mg/dL", low=2.5, high=4.5),
    # Inflammation
    "crp": ReferenceRange("C-Reactive Protein", "mg/L", high=3.0, optimal=(0, 1.0)),
    "hscrp": ReferenceRange("hs-CRP", "mg/L", high=3.0, optimal=(0, 1.0)),
    "esr": ReferenceRange("ESR", "mm/hr", high=20),
    # Metabolic
    "glucose": ReferenceRange("Glucose", "mg/dL", low=70, high=100),
    "hba1c": ReferenceRange("HbA1c", "%", high=5.7, optimal=(4.0, 5.6)),
    "insulin": ReferenceRange("Insulin", "uIU/mL", high=25),
    "uric-acid": ReferenceRange("Uric Acid", "mg/dL", high=7.0),
}

# Metric ids that share another biomarker's range
RANGE_ALIASES: dict[str, str] = {
    "blood_glucose": "glucose",
}

SUGGESTIONS: dict[tuple[str, str], str] = {
    ("ldl-cholesterol", "high"): "Consider dietary changes, exercise, and consult your doctor.",
    ("hdl-cholesterol", "low"): "Increase healthy fats, exercise, and avoid smoking.",
    ("triglycerides", "high"): "Reduce sugar and refined carbs. Increase omega-3 intake.",
    ("glucose", "high"): "Monitor carb intake and consider testing for diabetes.",
    ("vitamin-d", "low"): "Increase sun exposure or consider supplementation.",
    ("crp", "high"): "Elevated inflammation. Review diet, exercise, and stress levels.",
}


def lookup_range(metric_id: str) -> tuple[str, ReferenceRange] | None:
    """Find the reference range for a metric id, following aliases."""
    key = RANGE_ALIASES.get(metric_id, metric_id)
    ref = BIOMARKER_RANGES.get(key)
    if ref is None:
        return None
    return key, ref


class BiomarkerRules(RulePack):
    """Reference-range and trend rules for lab results and glucose."""

    families = (Family.BIOMARKER, Family.GLUCOSE)

    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        insights: list[Insight] = []
        if not series:
            return insights

        found = lookup_range(metric_id)
        if found is None:
            unknown = self._unknown_trend(metric_id, series, context)
            if unknown:
                insights.append(unknown)
            return insights

        key, ref = found
        range_insight = self._range(metric_id, key, series[-1].value, ref, context)
        if range_insight:
            insights.append(range_insight)

        if len(series) >= 2:
            trend_insight = self._trend(metric_id, series, ref, context)
            if trend_insight:
                insights.append(trend_insight)

        return insights

    def _range(
        self,
        metric_id: str,
        key: str,
        value: float,
        ref: ReferenceRange,
        context: RuleContext,
    ) -> Insight | None:
        if ref.high is not None and value > ref.high:
            severity = "critical" if value > ref.high * 1.2 else "significant"
            suggestion = SUGGESTIONS.get((key, "high"), "Consult your healthcare provider.")
            return self._insight(
                context,
                metric_id,
                "high",
                title=f"Elevated {ref.name}",
                body=(
                    f"Your {ref.name} is {value:.1f} {ref.unit}, above the reference range "
                    f"(>{ref.high:g} {ref.unit}). {suggestion}"
                ),
                score=0.9 if severity == "critical" else 0.7,
                tags=("biomarker", "elevated", severity),
                explain=f"{value:.1f} > {ref.high:g} {ref.unit}",
            )

        if ref.low is not None and value < ref.low:
            severity = "critical" if value < ref.low * 0.8 else "significant"
            suggestion = SUGGESTIONS.get((key, "low"), "Consult your healthcare provider.")
            return self._insight(
                context,
                metric_id,
                "low",
                title=f"Low {ref.name}",
                body=(
                    f"Your {ref.name} is {value:.1f} {ref.unit}, below the reference range "
                    f"(<{ref.low:g} {ref.unit}). {suggestion}"
                ),
                score=0.9 if severity == "critical" else 0.7,
                tags=("biomarker", "low", severity),
                explain=f"{value:.1f} < {ref.low:g} {ref.unit}",
            )

        if ref.optimal is not None:
            opt_low, opt_high = ref.optimal
            if value < opt_low or value > opt_high:
                return self._insight(
                    context,
                    metric_id,
                    "suboptimal",
                    title=f"{ref.name} Sub-optimal",
                    body=(
                        f"{ref.name} is {value:.1f} {ref.unit}, outside the optimal range "
                        f"({opt_low:g}-{opt_high:g} {ref.unit}) but within reference range."
                    ),
                    score=0.4,
                    tags=("biomarker", "suboptimal"),
                    explain=f"{value:.1f} {ref.unit} (suboptimal)",
                )

        return None

    def _trend(
        self,
        metric_id: str,
        series: Series,
        ref: ReferenceRange,
        context: RuleContext,
    ) -> Insight | None:
        trend = trend_slope(series)
        if trend.magnitude == "weak":
            return None

        latest = series[-1].value
        near_high = ref.high is not None and latest > ref.high * 0.9
        near_low = ref.low is not None and latest < ref.low * 1.1

        if (trend.direction == "up" and near_high) or (trend.direction == "down" and near_low):
            return self._insight(
                context,
                metric_id,
                "worsening_trend",
                title=f"{ref.name} Trending {trend.direction.title()}",
                body=(
                    f"{ref.name} has been trending {trend.direction} over recent measurements. "
                    "Monitor closely and consider lifestyle interventions."
                ),
                score=0.6,
                tags=("biomarker", "trend", "alert"),
                explain=trend.explain,
            )

        if (trend.direction == "down" and near_high) or (trend.direction == "up" and near_low):
            return self._insight(
                context,
                metric_id,
                "improving_trend",
                title=f"{ref.name} Improving",
                body=(
                    f"Great progress! {ref.name} is trending in a positive direction. Keep up "
                    "your healthy habits."
                ),
                score=0.5,
                tags=("biomarker", "trend", "positive"),
                explain=trend.explain,
            )

        return None

    def _unknown_trend(
        self, metric_id: str, series: Series, context: RuleContext
    ) -> Insight | None:
        if len(series) < 3:
            return None
        trend = trend_slope(series)
        if trend.magnitude != "strong":
            return None
        return self._insight(
            context,
            metric_id,
            "unknown_trend",
            title=f"{format_metric_name(metric_id)} Trending {trend.direction.title()}",
            body=(
                f"This biomarker shows a {trend.magnitude} {trend.direction}ward trend. "
                "Review with your healthcare provider."
            ),
            score=0.5,
            tags=("biomarker", "trend", "unknown"),
            explain=trend.explain,
        )

"""Family weights and the catalog of known metrics."""

from collections.abc import Mapping

import structlog

from .errors import UnknownFamilyError
from .models import Family, MetricSpec

logger = structlog.get_logger(__name__)

MAX_FAMILY_WEIGHT = 2.0

DEFAULT_FAMILY_WEIGHTS: dict[Family, float] = {
    Family.CARDIO: 1.2,
    Family.BLOOD_PRESSURE: 1.3,
    Family.SLEEP: 1.0,
    Family.ACTIVITY: 0.9,
    Family.BODY_COMPOSITION: 1.0,
    Family.RESPIRATORY: 1.1,
    Family.GLUCOSE: 1.2,
    Family.BIOMARKER: 1.0,
    Family.OTHER: 0.7,
}

FAMILY_TITLES: dict[Family, str] = {
    Family.CARDIO: "Cardiovascular",
    Family.BLOOD_PRESSURE: "Blood Pressure",
    Family.SLEEP: "Sleep & Recovery",
    Family.ACTIVITY: "Activity & Movement",
    Family.BODY_COMPOSITION: "Body Composition",
    Family.RESPIRATORY: "Respiratory",
    Family.GLUCOSE: "Blood Glucose",
    Family.BIOMARKER: "Lab Biomarkers",
    Family.OTHER: "Other Metrics",
}


def parse_family(name: str | Family) -> Family:
    """Convert a family name into a Family, failing on unknown names."""
    if isinstance(name, Family):
        return name
    try:
        return Family(name)
    except ValueError as e:
        raise UnknownFamilyError(name) from e


class FamilyRegistry:
    """Static family -> weight mapping, built once at startup."""

    def __init__(self, overrides: Mapping[str, float] | None = None) -> None:
        """Build the registry.

        Args:
            overrides: Family name -> weight replacements for the defaults.

        Raises:
            UnknownFamilyError: If an override names a family outside the set.
            ValueError: If a weight is outside (0, 2].
        """
        weights = dict(DEFAULT_FAMILY_WEIGHTS)
        for name, weight in (overrides or {}).items():
            family = parse_family(name)
            if not 0 < weight <= MAX_FAMILY_WEIGHT:
                raise ValueError(
                    f"Weight for {family.value} must be in (0, {MAX_FAMILY_WEIGHT}], got {weight}"
                )
            weights[family] = float(weight)
        self._weights = weights

    def family_weight(self, family: Family | str) -> float:
        """Weight multiplier applied to insights of a family."""
        return self._weights[parse_family(family)]

    def default_family(self) -> Family:
        return Family.OTHER

    def weights(self) -> dict[Family, float]:
        return dict(self._weights)


def _spec(
    metric_id: str,
    family: Family,
    unit: str,
    measurement: str,
    field: str,
    kind: str = "value",
    source: str = "raw",
    agg: str = "mean",
) -> MetricSpec:
    return MetricSpec(
        id=metric_id,
        family=family,
        unit=unit,
        kind=kind,  # type: ignore[arg-type]
        source=source,  # type: ignore[arg-type]
        measurement=measurement,
        field=field,
        preferred_agg=agg,  # type: ignore[arg-type]
    )


# Curated metrics, keyed to the measurement/field layout of the ingest bucket
CURATED_METRICS: tuple[MetricSpec, ...] = (
    # Cardio
    _spec("heart_rate", Family.CARDIO, "bpm", "heart", "bpm", kind="instant"),
    _spec("resting_heart_rate", Family.CARDIO, "bpm", "heart", "resting_bpm"),
    _spec("hrv", Family.CARDIO, "ms", "heart", "hrv_ms"),
    # Sleep
    _spec("sleep_asleep_core", Family.SLEEP, "min", "sleep", "core_min", "interval", "curated", "sum"),
    _spec("sleep_asleep_deep", Family.SLEEP, "min", "sleep", "deep_min", "interval", "curated", "sum"),
    _spec("sleep_asleep_rem", Family.SLEEP, "min", "sleep", "rem_min", "interval", "curated", "sum"),
    _spec("sleep_awake", Family.SLEEP, "min", "sleep", "awake_min", "interval", "curated", "sum"),
    _spec("sleep_in_bed", Family.SLEEP, "min", "sleep", "in_bed_min", "interval", "curated", "sum"),
    _spec("sleep_score", Family.SLEEP, "score", "sleep", "quality_score", source="curated", agg="last"),
    # Activity
    _spec("steps", Family.ACTIVITY, "count", "activity", "steps", agg="sum"),
    _spec("active_energy", Family.ACTIVITY, "kcal", "activity", "active_calories", agg="sum"),
    _spec("distance_walking_running", Family.ACTIVITY, "m", "activity", "distance_m", agg="sum"),
    _spec("flights_climbed", Family.ACTIVITY, "count", "activity", "floors_climbed", agg="sum"),
    # Body composition
    _spec("weight", Family.BODY_COMPOSITION, "kg", "body", "weight_kg", agg="last"),
    _spec("lean_body_mass", Family.BODY_COMPOSITION, "kg", "body", "lean_mass_kg", agg="last"),
    _spec("body_fat_percentage", Family.BODY_COMPOSITION, "%", "body", "body_fat_pct", agg="last"),
    _spec("bmi", Family.BODY_COMPOSITION, "kg/m2", "body", "bmi", agg="last"),
    # Blood pressure
    _spec("blood_pressure_systolic", Family.BLOOD_PRESSURE, "mmHg", "vitals", "bp_systolic", source="curated"),
    _spec("blood_pressure_diastolic", Family.BLOOD_PRESSURE, "mmHg", "vitals", "bp_diastolic", source="curated"),
    # Respiratory
    _spec("respiratory_rate", Family.RESPIRATORY, "br/min", "vitals", "respiratory_rate"),
    _spec("oxygen_saturation", Family.RESPIRATORY, "%", "vitals", "spo2_pct"),
    # Glucose
    _spec("blood_glucose", Family.GLUCOSE, "mg/dL", "vitals", "blood_glucose", source="curated"),
)

# Keyword heuristics for dynamically discovered metric types, checked in order
_FAMILY_KEYWORDS: tuple[tuple[Family, tuple[str, ...]], ...] = (
    (Family.CARDIO, ("heart", "hrv", "pulse")),
    (Family.SLEEP, ("sleep",)),
    (Family.BLOOD_PRESSURE, ("blood_pressure", "bloodpressure")),
    (Family.ACTIVITY, ("step", "distance", "energy", "active", "exercise", "flight")),
    (Family.BODY_COMPOSITION, ("weight", "mass", "fat", "bmi", "height")),
    (Family.RESPIRATORY, ("oxygen", "respiratory", "breathing")),
    (Family.GLUCOSE, ("glucose", "sugar")),
    (
        Family.BIOMARKER,
        ("cholesterol", "triglyceride", "hdl", "ldl", "creatinine", "albumin"),
    ),
)


class MetricCatalog:
    """Known metric specs plus any registered during dynamic discovery.

    Each instance owns its own state, so separate engines never share
    dynamically registered metrics.
    """

    def __init__(self, specs: tuple[MetricSpec, ...] = CURATED_METRICS) -> None:
        self._metrics: dict[str, MetricSpec] = {spec.id: spec for spec in specs}

    def get(self, metric_id: str) -> MetricSpec | None:
        return self._metrics.get(metric_id)

    def all(self) -> list[MetricSpec]:
        return list(self._metrics.values())

    def by_family(self, family: Family) -> list[MetricSpec]:
        return [spec for spec in self._metrics.values() if spec.family == family]

    def __contains__(self, metric_id: object) -> bool:
        return metric_id in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)

    def register(self, spec: MetricSpec) -> MetricSpec:
        """Register a spec unless one with the same id exists.

        Returns:
            The spec now stored under that id.
        """
        existing = self._metrics.get(spec.id)
        if existing is not None:
            return existing
        self._metrics[spec.id] = spec
        logger.debug(
            "metric_registered",
            metric=spec.id,
            family=spec.family.value,
            measurement=spec.measurement,
        )
        return spec

    def register_dynamic(self, metric_type: str) -> MetricSpec:
        """Register a metric type seen in the generic measurement."""
        return self.register(
            MetricSpec(
                id=metric_type,
                family=self.family_for(metric_type),
                kind="value",
                source="raw",
                measurement="other",
                field="value",
                preferred_agg="mean",
            )
        )

    @staticmethod
    def family_for(metric_type: str) -> Family:
        """Guess a family from a metric type name."""
        lower = metric_type.lower()
        for family, keywords in _FAMILY_KEYWORDS:
            if any(keyword in lower for keyword in keywords):
                return family
        return Family.OTHER

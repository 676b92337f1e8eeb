"""Per-family rule packs that turn metric series into candidate insights."""

from .activity import ActivityRules
from .base import RulePack
from .biomarker import BIOMARKER_RANGES, BiomarkerRules, ReferenceRange
from .blood_pressure import BloodPressureRules
from .body_composition import BodyCompositionRules
from .cardio import CardioRules
from .dispatch import RuleDispatcher, default_rule_packs
from .generic import GenericRules
from .sleep import SleepRules

__all__ = [
    "BIOMARKER_RANGES",
    "ActivityRules",
    "BiomarkerRules",
    "BloodPressureRules",
    "BodyCompositionRules",
    "CardioRules",
    "GenericRules",
    "ReferenceRange",
    "RuleDispatcher",
    "RulePack",
    "SleepRules",
    "default_rule_packs",
]

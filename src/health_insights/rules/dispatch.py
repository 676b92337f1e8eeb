"""Rule dispatch: routes a metric family to its rule pack."""

from collections.abc import Mapping

import structlog

from ..models import Family
from .activity import ActivityRules
from .base import RulePack
from .biomarker import BiomarkerRules
from .blood_pressure import BloodPressureRules
from .body_composition import BodyCompositionRules
from .cardio import CardioRules
from .generic import GenericRules
from .sleep import SleepRules

logger = structlog.get_logger(__name__)


def default_rule_packs() -> dict[Family, RulePack]:
    """Explicit family -> pack map used in production."""
    generic = GenericRules()
    biomarker = BiomarkerRules()
    return {
        Family.CARDIO: CardioRules(),
        Family.BLOOD_PRESSURE: BloodPressureRules(),
        Family.SLEEP: SleepRules(),
        Family.ACTIVITY: ActivityRules(),
        Family.BODY_COMPOSITION: BodyCompositionRules(),
        Family.BIOMARKER: biomarker,
        Family.GLUCOSE: biomarker,
        # No specialized respiratory pack yet
        Family.RESPIRATORY: generic,
        Family.OTHER: generic,
    }


class RuleDispatcher:
    """Pure lookup from family to rule pack with a generic fallback."""

    def __init__(
        self,
        packs: Mapping[Family, RulePack] | None = None,
        fallback: RulePack | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            packs: Family -> pack map. Defaults to the built-in packs.
            fallback: Pack for families missing from the map.
        """
        self._packs = dict(packs) if packs is not None else default_rule_packs()
        self._fallback = fallback or self._packs.get(Family.OTHER) or GenericRules()

    def dispatch(self, family: Family | str) -> RulePack:
        """Return the pack for a family; unknown families get the generic pack."""
        try:
            key = Family(family)
        except ValueError:
            logger.debug("rule_pack_fallback", family=str(family))
            return self._fallback
        pack = self._packs.get(key)
        if pack is None:
            logger.debug("rule_pack_fallback", family=key.value)
            return self._fallback
        return pack

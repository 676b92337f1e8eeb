"""Base rule pack class."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

import structlog

from ..models import Family, Insight, RuleContext, Series, insight_id

logger = structlog.get_logger(__name__)


class RulePack(ABC):
    """Turns one metric's series into zero or more candidate insights.

    Implementations must be pure: the same series and context always yield
    the same insights, and nothing outside the arguments is read or written.
    """

    families: tuple[Family, ...] = ()

    @abstractmethod
    def generate(self, metric_id: str, series: Series, context: RuleContext) -> list[Insight]:
        """Evaluate the pack's rules for one metric.

        Args:
            metric_id: Identifier of the metric being evaluated.
            series: The day's observations, ascending by timestamp.
            context: User, spec, window, and baseline history.

        Returns:
            Candidate insights with raw scores; empty when nothing fires.
        """

    def _insight(
        self,
        context: RuleContext,
        metric_id: str,
        rule: str,
        *,
        title: str,
        body: str,
        score: float,
        tags: Iterable[str],
        explain: str,
    ) -> Insight:
        """Build an insight stamped with the metric's family and a stable id."""
        local_date = context.window.date_str
        logger.debug("rule_fired", pack=self.__class__.__name__, metric=metric_id, rule=rule)
        return Insight(
            id=insight_id(context.user_id, local_date, metric_id, rule),
            title=title,
            body=body,
            score=score,
            tags=tuple(tags),
            family=context.spec.family,
            metric=metric_id,
            explain=explain,
            local_date=local_date,
            rule=rule,
        )


def recent(history: Series, context: RuleContext, days: int) -> Series:
    """History points from the last ``days`` local days up to the window end."""
    start = context.window.extend_back(days).start
    return [p for p in history if p.timestamp >= start]


def format_metric_name(metric_id: str) -> str:
    """``body_mass-index`` -> ``Body Mass Index``."""
    words = metric_id.replace("-", "_").split("_")
    return " ".join(word[:1].upper() + word[1:] for word in words if word)

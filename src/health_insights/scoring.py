"""Family-weighted scoring and severity bands."""

import math
from collections.abc import Iterable

from .errors import InvalidScoreError
from .models import Insight, Severity
from .registry import FamilyRegistry

CRITICAL_THRESHOLD = 0.8
SIGNIFICANT_THRESHOLD = 0.6
NOTABLE_THRESHOLD = 0.4


def check_raw_scores(insights: Iterable[Insight]) -> None:
    """Reject raw scores that are negative or not a number.

    Raises:
        InvalidScoreError: On the first offending insight.
    """
    for insight in insights:
        score = insight.score
        if math.isnan(score) or score < 0:
            raise InvalidScoreError(insight.id, insight.metric, score)


def score_insights(insights: list[Insight], registry: FamilyRegistry) -> list[Insight]:
    """Apply family weights, clamping the result to 1.0.

    Order is preserved; the raw score is kept on each returned insight.
    """
    check_raw_scores(insights)
    return [
        insight.with_score(min(1.0, insight.score * registry.family_weight(insight.family)))
        for insight in insights
    ]


def severity_of(score: float) -> Severity:
    """Map a weighted score to its severity band."""
    if score >= CRITICAL_THRESHOLD:
        return Severity.CRITICAL
    if score >= SIGNIFICANT_THRESHOLD:
        return Severity.SIGNIFICANT
    if score >= NOTABLE_THRESHOLD:
        return Severity.NOTABLE
    return Severity.NORMAL

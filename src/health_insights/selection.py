"""Insight de-duplication and capped top-K selection."""

from collections import Counter

import structlog

from .models import Family, Insight

logger = structlog.get_logger(__name__)


def dedupe_by_metric(insights: list[Insight]) -> list[Insight]:
    """Keep one insight per metric.

    A later insight replaces the kept one only when its score is strictly
    higher, so ties keep the first encountered. Output follows the order in
    which each metric first appeared.
    """
    best: dict[str, Insight] = {}
    for insight in insights:
        current = best.get(insight.metric)
        if current is None or insight.score > current.score:
            best[insight.metric] = insight
    dropped = len(insights) - len(best)
    if dropped:
        logger.debug("insights_deduplicated", dropped=dropped, kept=len(best))
    return list(best.values())


def select_top(
    insights: list[Insight],
    max_total: int = 12,
    max_per_family: int = 3,
) -> list[Insight]:
    """Pick the highest scoring insights under global and per-family caps.

    The sort is stable, so equal scores keep their input order.
    """
    ranked = sorted(insights, key=lambda i: i.score, reverse=True)
    per_family: Counter[Family] = Counter()
    selected: list[Insight] = []
    for insight in ranked:
        if len(selected) >= max_total:
            break
        if per_family[insight.family] >= max_per_family:
            continue
        selected.append(insight)
        per_family[insight.family] += 1
    return selected


def select_insights(
    insights: list[Insight],
    max_total: int = 12,
    max_per_family: int = 3,
) -> list[Insight]:
    """De-duplicate by metric, then apply the selection caps."""
    return select_top(dedupe_by_metric(insights), max_total, max_per_family)

"""Tests for de-duplication and capped selection."""

from collections import Counter

from health_insights.models import Family, Insight
from health_insights.selection import dedupe_by_metric, select_insights, select_top


def make_insight(metric: str, family: Family, score: float, rule: str = "rule") -> Insight:
    return Insight(
        id=f"{metric}-{rule}",
        title=f"{metric} {rule}",
        body="body",
        score=score,
        tags=(),
        family=family,
        metric=metric,
        explain="",
        local_date="2024-01-15",
        rule=rule,
    )


class TestDedupe:
    """Tests for dedupe_by_metric."""

    def test_keeps_highest_score_per_metric(self):
        insights = [
            make_insight("steps", Family.ACTIVITY, 0.4, "low_steps"),
            make_insight("steps", Family.ACTIVITY, 0.6, "declining_trend"),
        ]

        result = dedupe_by_metric(insights)

        assert [i.rule for i in result] == ["declining_trend"]

    def test_tie_keeps_first(self):
        insights = [
            make_insight("hrv", Family.CARDIO, 0.5, "first"),
            make_insight("hrv", Family.CARDIO, 0.5, "second"),
        ]

        assert dedupe_by_metric(insights)[0].rule == "first"

    def test_keeps_first_appearance_order(self):
        insights = [
            make_insight("a", Family.OTHER, 0.1),
            make_insight("b", Family.OTHER, 0.2),
            make_insight("a", Family.OTHER, 0.9, "better"),
        ]

        result = dedupe_by_metric(insights)

        assert [i.metric for i in result] == ["a", "b"]
        assert result[0].rule == "better"

    def test_empty(self):
        assert dedupe_by_metric([]) == []


class TestSelectTop:
    """Tests for select_top."""

    def test_orders_by_score(self):
        insights = [
            make_insight("a", Family.CARDIO, 0.3),
            make_insight("b", Family.SLEEP, 0.9),
            make_insight("c", Family.ACTIVITY, 0.6),
        ]

        assert [i.metric for i in select_top(insights)] == ["b", "c", "a"]

    def test_per_family_cap(self):
        insights = [make_insight(f"m{i}", Family.CARDIO, 0.9 - i * 0.1) for i in range(5)]
        insights.append(make_insight("sleep", Family.SLEEP, 0.1))

        result = select_top(insights, max_total=12, max_per_family=3)

        assert [i.metric for i in result] == ["m0", "m1", "m2", "sleep"]

    def test_global_cap(self):
        families = list(Family)
        insights = [
            make_insight(f"m{i}", families[i % len(families)], 1.0 - i * 0.01) for i in range(20)
        ]

        result = select_top(insights, max_total=12, max_per_family=3)

        assert len(result) == 12
        assert max(Counter(i.family for i in result).values()) <= 3

    def test_ties_keep_input_order(self):
        insights = [
            make_insight("x", Family.CARDIO, 0.5),
            make_insight("y", Family.SLEEP, 0.5),
            make_insight("z", Family.ACTIVITY, 0.5),
        ]

        assert [i.metric for i in select_top(insights)] == ["x", "y", "z"]

    def test_fewer_than_caps(self):
        insights = [make_insight("a", Family.CARDIO, 0.2)]

        assert select_top(insights, max_total=12, max_per_family=3) == insights


class TestSelectInsights:
    """Tests for select_insights."""

    def test_dedup_runs_before_caps(self):
        """Duplicate metrics do not use up a family's slots."""
        insights = [
            make_insight("hrv", Family.CARDIO, 0.9, "low_hrv"),
            make_insight("hrv", Family.CARDIO, 0.8, "other"),
            make_insight("resting_heart_rate", Family.CARDIO, 0.7),
            make_insight("heart_rate", Family.CARDIO, 0.6),
        ]

        result = select_insights(insights, max_total=12, max_per_family=3)

        assert [i.metric for i in result] == ["hrv", "resting_heart_rate", "heart_rate"]

    def test_metrics_are_unique(self):
        insights = [
            make_insight(metric, Family.OTHER, score, rule)
            for metric in ("a", "b")
            for score, rule in ((0.3, "r1"), (0.6, "r2"))
        ]

        result = select_insights(insights)

        assert sorted(i.metric for i in result) == ["a", "b"]
        assert all(i.rule == "r2" for i in result)

    def test_deterministic(self):
        insights = [
            make_insight(f"m{i}", list(Family)[i % 9], (i * 37 % 10) / 10) for i in range(30)
        ]

        assert select_insights(insights) == select_insights(list(insights))

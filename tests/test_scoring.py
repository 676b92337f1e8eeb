"""Tests for family-weighted scoring and severity mapping."""

import math

import pytest

from health_insights.errors import InvalidScoreError
from health_insights.models import Family, Insight, Severity
from health_insights.registry import FamilyRegistry
from health_insights.scoring import check_raw_scores, score_insights, severity_of


def make_insight(metric: str, family: Family, score: float, rule: str = "rule") -> Insight:
    return Insight(
        id=f"{metric}-{rule}",
        title=metric,
        body="body",
        score=score,
        tags=(),
        family=family,
        metric=metric,
        explain="",
        local_date="2024-01-15",
        rule=rule,
    )


class TestScoreInsights:
    """Tests for score_insights."""

    def test_applies_family_weight(self):
        scored = score_insights(
            [
                make_insight("resting_heart_rate", Family.CARDIO, 0.7),
                make_insight("sleep_score", Family.SLEEP, 0.5),
            ],
            FamilyRegistry(),
        )

        assert scored[0].score == pytest.approx(0.84)
        assert scored[0].raw_score == 0.7
        assert scored[1].score == pytest.approx(0.5)

    def test_clamps_to_one(self):
        scored = score_insights(
            [make_insight("blood_pressure_systolic", Family.BLOOD_PRESSURE, 0.95)],
            FamilyRegistry(),
        )

        assert scored[0].score == 1.0
        assert scored[0].raw_score == 0.95

    def test_preserves_order(self):
        insights = [
            make_insight("a", Family.OTHER, 0.1),
            make_insight("b", Family.CARDIO, 0.9),
            make_insight("c", Family.SLEEP, 0.5),
        ]

        scored = score_insights(insights, FamilyRegistry())

        assert [i.metric for i in scored] == ["a", "b", "c"]

    def test_does_not_mutate_input(self):
        insight = make_insight("a", Family.CARDIO, 0.5)

        score_insights([insight], FamilyRegistry())

        assert insight.score == 0.5
        assert insight.raw_score is None

    def test_uses_overridden_weights(self):
        scored = score_insights(
            [make_insight("sleep_score", Family.SLEEP, 0.5)], FamilyRegistry({"sleep": 1.5})
        )

        assert scored[0].score == pytest.approx(0.75)

    def test_zero_score_is_allowed(self):
        assert score_insights([make_insight("a", Family.OTHER, 0.0)], FamilyRegistry())[0].score == 0

    @pytest.mark.parametrize("score", [-0.1, math.nan])
    def test_invalid_raw_score_raises(self, score):
        with pytest.raises(InvalidScoreError):
            score_insights([make_insight("a", Family.OTHER, score)], FamilyRegistry())

    def test_check_raw_scores_names_metric(self):
        with pytest.raises(InvalidScoreError, match="steps"):
            check_raw_scores([make_insight("steps", Family.ACTIVITY, -1.0)])


@pytest.mark.parametrize(
    ("score", "severity"),
    [
        (1.0, Severity.CRITICAL),
        (0.84, Severity.CRITICAL),
        (0.8, Severity.CRITICAL),
        (0.7999, Severity.SIGNIFICANT),
        (0.6, Severity.SIGNIFICANT),
        (0.5999, Severity.NOTABLE),
        (0.5, Severity.NOTABLE),
        (0.4, Severity.NOTABLE),
        (0.39, Severity.NORMAL),
        (0.0, Severity.NORMAL),
    ],
)
def test_severity_bands(score, severity):
    assert severity_of(score) is severity

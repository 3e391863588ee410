"""
Tests for the AI_SMART officer scorer.

Covers:
- Sub-score formulas
- Weighted combination and confidence
- Ranking order and tie-breaks
- Reasoning rendering
"""

from datetime import datetime, timedelta, timezone

import pytest

from smart_assign.balancing.models import (
    ComplexityFactors, OfficerProfile, RequestComplexity, ScoringWeights, SubScores
)
from smart_assign.balancing.scoring import (
    availability_score,
    category_match,
    combine_scores,
    complexity_fit,
    confidence_from_total,
    freshness_score,
    hours_since,
    peak_time_bonus,
    performance_score,
    predicted_completion_time,
    rank_officers,
    render_reasoning,
    score_officer,
    workload_score,
)

NOW = datetime(2024, 6, 3, 10, 0, tzinfo=timezone.utc)


def _complexity(score: float) -> RequestComplexity:
    return RequestComplexity(score=score, factors=ComplexityFactors())


class TestSubScores:
    """Tests for the individual factor scores."""

    def test_idle_officer_has_full_workload_score(self):
        assert workload_score(0, 20) == 1.0

    def test_workload_score_is_floored_at_zero(self):
        assert workload_score(20, 20) == 0.0
        assert workload_score(35, 20) == 0.0

    def test_workload_score_linear(self):
        assert workload_score(5, 20) == pytest.approx(0.75)

    def test_performance_score(self):
        assert performance_score(0.9, 0.8) == pytest.approx(0.86)

    def test_category_exact_match(self):
        assert category_match("IT Equipment", {"IT Equipment": 0.9}) == 0.9

    def test_category_partial_match(self):
        assert category_match("IT Equipment", {"IT": 0.9}) == pytest.approx(0.72)
        assert category_match("IT", {"IT Equipment": 0.5}) == pytest.approx(0.4)

    def test_category_without_data_is_neutral(self):
        assert category_match("IT Equipment", {}) == 0.5
        assert category_match("IT Equipment", None) == 0.5
        assert category_match("Furniture", {"IT Equipment": 0.9}) == 0.5

    def test_peak_time_bonus(self):
        assert peak_time_bonus([9, 10, 11], 10) == 1.0
        assert peak_time_bonus([9, 10, 11], 16) == 0.7
        assert peak_time_bonus([], 10) == 0.8

    def test_freshness(self):
        assert freshness_score(None) == 1.0
        assert freshness_score(12) == pytest.approx(0.5)
        assert freshness_score(48) == 1.0

    def test_hours_since_accepts_naive_utc(self):
        stored = (NOW - timedelta(hours=6)).replace(tzinfo=None)

        assert hours_since(stored, NOW) == pytest.approx(6.0)
        assert hours_since(None, NOW) is None

    def test_availability(self):
        assert availability_score(1.0, 1.0) == pytest.approx(1.0)
        assert availability_score(0.7, 0.5) == pytest.approx(0.62)

    def test_complexity_fit(self):
        assert complexity_fit(0.5, 0.5) == 1.0
        assert complexity_fit(0.9, 0.5) == pytest.approx(0.6)

    def test_predicted_completion_time(self):
        assert predicted_completion_time(24.0, 0.0) == 24.0
        assert predicted_completion_time(24.0, 1.0) == pytest.approx(36.0)


class TestCombine:
    """Tests for the weighted combination."""

    def test_equal_sub_scores_combine_to_same_value(self):
        sub = SubScores(workload=0.7, performance=0.7, specialty=0.7, availability=0.7, complexity_fit=0.7)

        assert combine_scores(sub, ScoringWeights()) == pytest.approx(0.7)

    def test_weights_shift_the_total(self):
        sub = SubScores(workload=1.0, performance=0.0, specialty=0.0, availability=0.0, complexity_fit=0.0)

        default_total = combine_scores(sub, ScoringWeights())
        heavy_total = combine_scores(sub, ScoringWeights(workload=10.0))

        # 1.2 / (1.2 + 1.5 + 1.3 + 1.0 + 1.1)
        assert default_total == pytest.approx(1.2 / 6.1)
        assert heavy_total > default_total

    def test_confidence_is_capped(self):
        assert confidence_from_total(0.5) == pytest.approx(0.7)
        assert confidence_from_total(0.95) == 1.0


class TestScoreOfficer:
    """Tests for scoring and ranking officers."""

    def test_score_breakdown(self):
        officer = OfficerProfile(
            officer_id=1,
            name="Alice",
            current_workload=0,
            success_rate=0.9,
            efficiency_score=0.8,
            complexity_handling=0.5,
            category_expertise={"IT Equipment": 0.9},
            peak_performance_hours=[10],
        )

        score = score_officer(officer, _complexity(0.5), "IT Equipment", ScoringWeights(), 20, NOW, 10)

        assert score.sub_scores.workload == 1.0
        assert score.sub_scores.specialty == 0.9
        assert score.sub_scores.availability == pytest.approx(1.0)
        assert score.sub_scores.complexity_fit == 1.0
        assert score.facts.peak_time is True
        assert score.facts.hours_since_last_assignment is None
        assert score.confidence_score == pytest.approx(min(score.total_score + 0.2, 1.0))
        assert score.predicted_completion_time == pytest.approx(30.0)

    def test_busier_officer_ranks_lower(self):
        idle = OfficerProfile(officer_id=1, name="Idle", current_workload=0)
        busy = OfficerProfile(officer_id=2, name="Busy", current_workload=15)

        ranked = rank_officers([busy, idle], _complexity(0.5), "General", ScoringWeights(), 20, NOW, 10)

        assert [s.officer_id for s in ranked] == [1, 2]

    def test_ties_keep_pool_order(self):
        pool = [OfficerProfile(officer_id=i, name=f"O{i}") for i in (1, 2, 3)]

        ranked = rank_officers(pool, _complexity(0.5), "General", ScoringWeights(), 20, NOW, 10)

        assert [s.officer_id for s in ranked] == [1, 2, 3]

    def test_empty_pool(self):
        assert rank_officers([], _complexity(0.5), "General", ScoringWeights(), 20, NOW, 10) == []


class TestReasoning:
    """Tests for the human-readable reasoning trail."""

    def test_render_reasoning(self):
        officer = OfficerProfile(
            officer_id=1,
            name="Alice",
            current_workload=4,
            last_assigned_at=NOW - timedelta(hours=3),
            peak_performance_hours=[9],
        )
        score = score_officer(officer, _complexity(0.2), "IT Equipment", ScoringWeights(), 20, NOW, 10)

        lines = render_reasoning(score)

        assert lines[0] == "Workload: 4/20 requests (80%)"
        assert "IT Equipment" in lines[2]
        assert "peak time: No" in lines[3]
        assert "last assigned: 3.0h ago" in lines[3]
        assert lines[-1].startswith("Predicted completion:")

    def test_render_reasoning_without_history(self):
        score = score_officer(
            OfficerProfile(officer_id=1), _complexity(0.5), "General", ScoringWeights(), 20, NOW, 10
        )

        lines = render_reasoning(score)

        assert "peak time: no data" in lines[3]
        assert "never assigned" in lines[3]

"""
Officer scoring for the AI_SMART strategy.

Scores a candidate officer against one request on:
- Current workload (fewer active requests = better)
- Historical performance (success rate, efficiency)
- Category expertise (skill matching)
- Availability (peak hours, time since last assignment)
- Complexity fit (request complexity vs. officer capability)

All functions here are pure; workload counts and metrics are read by the
caller and passed in through OfficerProfile.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from smart_assign.balancing.clock import hours_between
from smart_assign.balancing.models import (
    OfficerProfile, OfficerScore, RequestComplexity, ScoreFacts,
    ScoringWeights, SubScores
)

# Fixed weights for the factors that are not operator-configurable
AVAILABILITY_WEIGHT = 1.0
COMPLEXITY_WEIGHT = 1.1

NEUTRAL_SPECIALTY = 0.5
PARTIAL_MATCH_FACTOR = 0.8

PEAK_BONUS = 1.0
OFF_PEAK_BONUS = 0.7
NO_PEAK_DATA_BONUS = 0.8

# Hours since last assignment that count as "fully fresh"
FRESHNESS_WINDOW_HOURS = 24.0
NEVER_ASSIGNED_HOURS = 999.0

CONFIDENCE_BOOST = 0.2


def workload_score(current_workload: int, capacity: int) -> float:
    """Inverse workload: 1.0 when idle, 0.0 at or beyond capacity."""
    if capacity <= 0:
        return 0.0
    return max(0.0, (capacity - current_workload) / capacity)


def performance_score(success_rate: float, efficiency_score: float) -> float:
    return success_rate * 0.6 + efficiency_score * 0.4


def category_match(category: str, expertise: Optional[Dict[str, float]]) -> float:
    """
    Expertise score for a category.

    Exact key match returns the stored affinity; a label containing the other
    (e.g. "IT Equipment" vs "IT") returns 80% of it; otherwise neutral.
    """
    if not expertise or not isinstance(expertise, dict):
        return NEUTRAL_SPECIALTY

    if category in expertise:
        return float(expertise[category])

    for label, score in expertise.items():
        if category in label or label in category:
            return float(score) * PARTIAL_MATCH_FACTOR

    return NEUTRAL_SPECIALTY


def peak_time_bonus(peak_hours: Optional[Sequence[int]], current_hour: int) -> float:
    if not peak_hours:
        return NO_PEAK_DATA_BONUS
    return PEAK_BONUS if current_hour in peak_hours else OFF_PEAK_BONUS


def hours_since(last_assigned_at: Optional[datetime], now: datetime) -> Optional[float]:
    """Hours between a stored (naive UTC or aware) timestamp and now."""
    if last_assigned_at is None:
        return None
    return hours_between(last_assigned_at, now)


def freshness_score(hours_since_last: Optional[float]) -> float:
    """Prefer officers not assigned recently; never-assigned officers are fully fresh."""
    if hours_since_last is None:
        hours_since_last = NEVER_ASSIGNED_HOURS
    return min(hours_since_last / FRESHNESS_WINDOW_HOURS, 1.0)


def availability_score(peak_bonus: float, freshness: float) -> float:
    return peak_bonus * 0.6 + freshness * 0.4


def complexity_fit(request_complexity: float, complexity_handling: float) -> float:
    return 1 - abs(request_complexity - complexity_handling)


def predicted_completion_time(average_completion_time: float, request_complexity: float) -> float:
    """Officer's average completion time stretched by up to 50% for complex requests."""
    return average_completion_time * (1 + request_complexity * 0.5)


def combine_scores(sub_scores: SubScores, weights: ScoringWeights) -> float:
    """Weighted average of the sub-scores."""
    weighted = [
        (sub_scores.workload, weights.workload),
        (sub_scores.performance, weights.performance),
        (sub_scores.specialty, weights.specialty),
        (sub_scores.availability, AVAILABILITY_WEIGHT),
        (sub_scores.complexity_fit, COMPLEXITY_WEIGHT),
    ]
    total_weight = sum(w for _, w in weighted)
    return sum(score * w for score, w in weighted) / total_weight


def confidence_from_total(total_score: float) -> float:
    return min(total_score + CONFIDENCE_BOOST, 1.0)


def score_officer(
    officer: OfficerProfile,
    complexity: RequestComplexity,
    category: str,
    weights: ScoringWeights,
    capacity: int,
    now: datetime,
    current_hour: int
) -> OfficerScore:
    """Score one officer against one request."""
    hours_since_last = hours_since(officer.last_assigned_at, now)
    peak_bonus = peak_time_bonus(officer.peak_performance_hours, current_hour)

    sub_scores = SubScores(
        workload=workload_score(officer.current_workload, capacity),
        performance=performance_score(officer.success_rate, officer.efficiency_score),
        specialty=category_match(category, officer.category_expertise),
        availability=availability_score(peak_bonus, freshness_score(hours_since_last)),
        complexity_fit=complexity_fit(complexity.score, officer.complexity_handling),
    )
    total_score = combine_scores(sub_scores, weights)

    return OfficerScore(
        officer_id=officer.officer_id,
        officer_name=officer.name,
        sub_scores=sub_scores,
        facts=ScoreFacts(
            current_workload=officer.current_workload,
            capacity=capacity,
            success_rate=officer.success_rate,
            efficiency_score=officer.efficiency_score,
            category=category,
            peak_time=None if not officer.peak_performance_hours else peak_bonus == PEAK_BONUS,
            hours_since_last_assignment=hours_since_last,
            request_complexity=complexity.score,
            complexity_handling=officer.complexity_handling,
        ),
        total_score=total_score,
        confidence_score=confidence_from_total(total_score),
        predicted_completion_time=predicted_completion_time(
            officer.average_completion_time, complexity.score
        ),
        current_workload=officer.current_workload,
    )


def rank_officers(
    officers: Sequence[OfficerProfile],
    complexity: RequestComplexity,
    category: str,
    weights: ScoringWeights,
    capacity: int,
    now: datetime,
    current_hour: int
) -> List[OfficerScore]:
    """Score every officer, best first. Ties keep the pool order (officer id)."""
    scored = [
        score_officer(officer, complexity, category, weights, capacity, now, current_hour)
        for officer in officers
    ]
    scored.sort(key=lambda s: s.total_score, reverse=True)
    return scored


def render_reasoning(score: OfficerScore) -> List[str]:
    """Human-readable reasoning trail for an officer score."""
    sub, facts = score.sub_scores, score.facts

    if facts.peak_time is None:
        peak = "no data"
    else:
        peak = "Yes" if facts.peak_time else "No"
    if facts.hours_since_last_assignment is None:
        last = "never assigned"
    else:
        last = f"last assigned: {facts.hours_since_last_assignment:.1f}h ago"

    return [
        f"Workload: {facts.current_workload}/{facts.capacity} requests ({sub.workload * 100:.0f}%)",
        f"Performance: {sub.performance * 100:.0f}% "
        f"(success: {facts.success_rate * 100:.0f}%, efficiency: {facts.efficiency_score * 100:.0f}%)",
        f"Category expertise: {sub.specialty * 100:.0f}% match for \"{facts.category}\"",
        f"Availability: {sub.availability * 100:.0f}% (peak time: {peak}, {last})",
        f"Complexity fit: {sub.complexity_fit * 100:.0f}% "
        f"(request: {facts.request_complexity * 100:.0f}%, officer capability: {facts.complexity_handling * 100:.0f}%)",
        f"Predicted completion: {score.predicted_completion_time:.1f} hours",
    ]

"""
Assignment strategies.

Every strategy implements select(pool, context) and returns a Candidate or
None when the pool is empty. Strategies are looked up by Strategy name in
STRATEGY_REGISTRY; unknown names resolve to AI_SMART.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from smart_assign.balancing.config import TOP_CANDIDATES_LOGGED
from smart_assign.balancing.models import (
    Candidate, LoadBalancingConfig, OfficerProfile, OfficerScore,
    RequestComplexity, Strategy, resolve_strategy
)
from smart_assign.balancing.scoring import (
    category_match, complexity_fit, rank_officers, render_reasoning, workload_score
)

logger = logging.getLogger(__name__)


@dataclass
class SelectionContext:
    """Everything a strategy may consult besides the officer pool."""
    request_id: int
    request: Optional[Any]
    complexity: RequestComplexity
    category: str
    config: LoadBalancingConfig
    capacity: int
    now: datetime
    current_hour: int
    advance_cursor: Callable[[], int]
    rng: random.Random


class AssignmentStrategy:
    """Base class for strategies."""
    name: Strategy
    confidence: float = 0.7
    needs_metrics: bool = True  # Pool must carry performance metrics
    needs_workload: bool = True  # Pool must carry fresh active-request counts

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        raise NotImplementedError

    def _best(self, pool: Sequence[OfficerProfile], score: Callable[[OfficerProfile], float]) -> OfficerProfile:
        # max() keeps the first of equal scores, i.e. the lowest officer id
        return max(pool, key=score)


class AISmartStrategy(AssignmentStrategy):
    """Full multi-factor scorer; confidence comes from the score itself."""
    name = Strategy.AI_SMART

    def rank(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> List[OfficerScore]:
        return rank_officers(
            pool,
            context.complexity,
            context.category,
            context.config.weights,
            context.capacity,
            context.now,
            context.current_hour,
        )

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if not pool:
            return None

        ranked = self.rank(pool, context)
        best = ranked[0]

        logger.info(f"AI_SMART top {TOP_CANDIDATES_LOGGED} candidates for request {context.request_id}:")
        for idx, scored in enumerate(ranked[:TOP_CANDIDATES_LOGGED], start=1):
            logger.info(
                f"  {idx}. {scored.officer_name} - score: {scored.total_score * 100:.1f}%, "
                f"confidence: {scored.confidence_score * 100:.0f}%"
            )
            for line in render_reasoning(scored):
                logger.debug(f"     - {line}")

        return Candidate(
            officer_id=best.officer_id,
            confidence=best.confidence_score,
            predicted_time=best.predicted_completion_time,
            score=best,
        )


class SkillBasedStrategy(AssignmentStrategy):
    """Category expertise weighted 0.7, spare capacity weighted 0.3."""
    name = Strategy.SKILL_BASED
    confidence = 0.75

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if context.request is None or not pool:
            return None

        def score(officer: OfficerProfile) -> float:
            return (
                category_match(context.category, officer.category_expertise) * 0.7
                + workload_score(officer.current_workload, context.capacity) * 0.3
            )

        best = self._best(pool, score)
        return Candidate(officer_id=best.officer_id, confidence=self.confidence)


class PredictiveStrategy(AssignmentStrategy):
    """Predicted success on a request of this complexity, penalized by workload."""
    name = Strategy.PREDICTIVE
    confidence = 0.8

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if not pool:
            return None

        def score(officer: OfficerProfile) -> float:
            success_probability = (
                officer.success_rate
                * complexity_fit(context.complexity.score, officer.complexity_handling)
                * officer.efficiency_score
            )
            return success_probability * 0.7 + workload_score(officer.current_workload, context.capacity) * 0.3

        best = self._best(pool, score)
        return Candidate(officer_id=best.officer_id, confidence=self.confidence)


class LeastLoadedStrategy(AssignmentStrategy):
    """Fewest active requests; ties go to the lowest officer id."""
    name = Strategy.LEAST_LOADED
    confidence = 0.65
    needs_metrics = False

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if not pool:
            return None
        best = min(pool, key=lambda o: (o.current_workload, o.officer_id))
        return Candidate(officer_id=best.officer_id, confidence=self.confidence)


class RoundRobinStrategy(AssignmentStrategy):
    """Rotate through officers ordered by id using the persisted cursor."""
    name = Strategy.ROUND_ROBIN
    confidence = 0.6
    needs_metrics = False
    needs_workload = False

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if not pool:
            return None
        ordered = sorted(pool, key=lambda o: o.officer_id)
        cursor = context.advance_cursor()
        picked = ordered[cursor % len(ordered)]
        return Candidate(officer_id=picked.officer_id, confidence=self.confidence)


class RandomStrategy(AssignmentStrategy):
    """Uniform random pick."""
    name = Strategy.RANDOM
    confidence = 0.5
    needs_metrics = False
    needs_workload = False

    def select(self, pool: Sequence[OfficerProfile], context: SelectionContext) -> Optional[Candidate]:
        if not pool:
            return None
        picked = pool[context.rng.randrange(len(pool))]
        return Candidate(officer_id=picked.officer_id, confidence=self.confidence)


STRATEGY_REGISTRY: Dict[Strategy, AssignmentStrategy] = {
    strategy.name: strategy
    for strategy in (
        AISmartStrategy(),
        SkillBasedStrategy(),
        PredictiveStrategy(),
        LeastLoadedStrategy(),
        RoundRobinStrategy(),
        RandomStrategy(),
    )
}


def get_strategy(name: Any) -> AssignmentStrategy:
    """Strategy implementation for a name; unknown or empty names get AI_SMART."""
    return STRATEGY_REGISTRY[resolve_strategy(name)]

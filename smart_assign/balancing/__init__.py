"""Load-balancing engine - complexity analysis, officer scoring and assignment strategies."""

from smart_assign.balancing.models import (
    Strategy, LoadBalancingConfig, ScoringWeights, Selection, OfficerScore, AIAnalytics
)
from smart_assign.balancing.complexity import analyze_request_complexity
from smart_assign.balancing.strategies import get_strategy

__all__ = [
    "Strategy",
    "LoadBalancingConfig",
    "ScoringWeights",
    "Selection",
    "OfficerScore",
    "AIAnalytics",
    "analyze_request_complexity",
    "get_strategy",
]

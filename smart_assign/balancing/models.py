"""Data models for the load-balancing engine."""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List, Any
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Supported assignment strategies."""
    AI_SMART = "AI_SMART"  # Full multi-factor scorer
    SKILL_BASED = "SKILL_BASED"  # Category expertise first, workload second
    PREDICTIVE = "PREDICTIVE"  # Predicted success on similar complexity
    LEAST_LOADED = "LEAST_LOADED"  # Fewest active requests
    ROUND_ROBIN = "ROUND_ROBIN"  # Rotate through officers by id
    RANDOM = "RANDOM"  # Uniform pick


DEFAULT_STRATEGY = Strategy.AI_SMART


def resolve_strategy(name: Any) -> Strategy:
    """Map a stored or user-supplied strategy name to a Strategy, defaulting to AI_SMART."""
    if isinstance(name, Strategy):
        return name
    if not name:
        return DEFAULT_STRATEGY
    try:
        return Strategy(str(name).strip().upper())
    except ValueError:
        logger.warning(f"Unknown load-balancing strategy {name!r}, using {DEFAULT_STRATEGY.value}")
        return DEFAULT_STRATEGY


class ScoringWeights(BaseModel):
    """Configurable factor weights for the AI_SMART scorer."""
    workload: float = Field(default=1.2, ge=0)
    performance: float = Field(default=1.5, ge=0)
    specialty: float = Field(default=1.3, ge=0)
    priority: float = Field(default=1.0, ge=0)  # Stored for operators; priority already feeds complexity


class LoadBalancingConfig(BaseModel):
    """The active load-balancing configuration."""
    enabled: bool = False
    strategy: Strategy = DEFAULT_STRATEGY
    auto_assign_on_approval: bool = True
    learning_enabled: bool = True
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    min_confidence_score: float = Field(default=0.6, ge=0, le=1)

    @field_validator("strategy", mode="before")
    @classmethod
    def _resolve_strategy(cls, value: Any) -> Strategy:
        return resolve_strategy(value)


class ComplexityFactors(BaseModel):
    """Inputs that went into a complexity score."""
    item_count: int = 0
    total_value: float = 0.0
    urgency: str = "MEDIUM"
    category_complexity: float = 0.5


class RequestComplexity(BaseModel):
    """Normalized complexity (0-1) of one request."""
    score: float = Field(ge=0, le=1)
    factors: ComplexityFactors


class OfficerProfile(BaseModel):
    """An eligible officer with a fresh workload count and a metrics snapshot."""
    officer_id: int
    name: str = "Unknown"
    current_workload: int = 0  # Active requests, re-counted for every scoring pass
    success_rate: float = 0.9
    efficiency_score: float = 0.8
    average_completion_time: float = 24.0  # hours
    complexity_handling: float = 0.5
    category_expertise: Dict[str, float] = {}
    peak_performance_hours: List[int] = []
    last_assigned_at: Optional[datetime] = None


class SubScores(BaseModel):
    """Per-factor scores, each in 0-1."""
    workload: float
    performance: float
    specialty: float
    availability: float
    complexity_fit: float


class ScoreFacts(BaseModel):
    """Raw facts behind the sub-scores, kept for the reasoning trail."""
    current_workload: int
    capacity: int
    success_rate: float
    efficiency_score: float
    category: str
    peak_time: Optional[bool] = None  # None when the officer has no peak-hour data
    hours_since_last_assignment: Optional[float] = None  # None when never assigned
    request_complexity: float
    complexity_handling: float


class OfficerScore(BaseModel):
    """Scored officer for one request."""
    officer_id: int
    officer_name: str
    sub_scores: SubScores
    facts: ScoreFacts
    total_score: float
    confidence_score: float
    predicted_completion_time: float  # hours
    current_workload: int


class Candidate(BaseModel):
    """An officer picked by a strategy."""
    officer_id: int
    confidence: float
    predicted_time: Optional[float] = None
    score: Optional[OfficerScore] = None


class Selection(BaseModel):
    """Result of officer selection, as handed to the orchestrator."""
    officer_id: int
    confidence: float
    predicted_time: Optional[float] = None
    strategy: Strategy
    flagged_for_review: bool = False  # Confidence below the configured minimum


class TopPerformer(BaseModel):
    officer_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    success_rate: float
    average_completion_time: float
    total_assignments: int
    efficiency_score: float
    quality_score: float = 0.8
    average_response_time: float = 2.0  # hours


class StrategyStats(BaseModel):
    strategy: str
    count: int
    average_confidence: float


class AIAnalytics(BaseModel):
    """Read-only reporting view over assignment logs and officer metrics."""
    total_assignments: int
    average_confidence: float
    flagged_assignments: int = 0
    top_performers: List[TopPerformer] = []
    strategy_performance: List[StrategyStats] = []

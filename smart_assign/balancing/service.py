"""
Load-balancing service for procurement requests.

Provides the operations the procurement workflow calls: reading and
replacing settings, selecting officers, auto-assigning requests, learning
from completed assignments and reporting analytics.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smart_assign.balancing import config as lb_config
from smart_assign.balancing.analytics import build_ai_analytics
from smart_assign.balancing.clock import to_storage, utc_now
from smart_assign.balancing.learning import LearningFeedbackLoop
from smart_assign.balancing.models import (
    AIAnalytics, LoadBalancingConfig, OfficerScore, Selection
)
from smart_assign.balancing.orchestrator import AssignmentOrchestrator
from smart_assign.db.repositories import (
    AssignmentLogStore, ConfigRepository, MetricsStore, OfficerDirectory, RequestStore
)

logger = logging.getLogger(__name__)


class LoadBalancingService:
    """Service for automatic assignment of procurement requests."""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        capacity: int = lb_config.CAPACITY_CEILING,
        active_statuses=lb_config.ACTIVE_STATUSES,
        pending_status: str = lb_config.PENDING_STATUS,
        officer_role: str = lb_config.OFFICER_ROLE,
        timezone_name: str = lb_config.TIMEZONE
    ):
        self.db = db
        self.clock = clock
        self.settings = ConfigRepository(db)
        self.metrics = MetricsStore(db)
        self.logs = AssignmentLogStore(db)
        self.orchestrator = AssignmentOrchestrator(
            db,
            officers=OfficerDirectory(db, officer_role),
            requests=RequestStore(db, active_statuses),
            config_repo=self.settings,
            metrics=self.metrics,
            logs=self.logs,
            clock=clock,
            rng=rng or random.Random(),
            capacity=capacity,
            timezone_name=timezone_name,
            pending_status=pending_status,
        )
        self.learning = LearningFeedbackLoop(db, self.metrics, self.logs, clock)

    # =============================================================================
    # Settings
    # =============================================================================

    def get_settings(self) -> LoadBalancingConfig:
        """Active settings, or defaults when none have been saved."""
        try:
            return self.settings.get()
        finally:
            self.db.rollback()

    def update_settings(
        self,
        config: Union[LoadBalancingConfig, Dict[str, Any]],
        updated_by_id: Optional[int] = None
    ) -> LoadBalancingConfig:
        """
        Replace the active settings and reset the round-robin cursor.

        Raises pydantic.ValidationError for invalid input and re-raises
        store errors (including StaleDataError on a concurrent update)
        after rolling back.
        """
        if not isinstance(config, LoadBalancingConfig):
            config = LoadBalancingConfig.model_validate(config)

        try:
            saved = self.settings.replace(config, to_storage(self.clock()), updated_by_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Failed to update load-balancing settings", exc_info=True)
            raise

        logger.info(
            f"Load-balancing settings updated by {updated_by_id}: "
            f"enabled={saved.enabled}, strategy={saved.strategy.value}"
        )
        return saved

    def _load_settings(self) -> Optional[LoadBalancingConfig]:
        """Read settings in a transaction of their own; None if the store fails."""
        try:
            return self.settings.get()
        except SQLAlchemyError:
            logger.error("Could not load load-balancing settings", exc_info=True)
            return None
        finally:
            self.db.rollback()

    # =============================================================================
    # Selection and assignment
    # =============================================================================

    def select_officer(
        self,
        strategy: Any,
        request_id: int,
        config: Optional[LoadBalancingConfig] = None
    ) -> Optional[Selection]:
        """Pick an officer for a request without assigning it."""
        config = config or self._load_settings()
        if config is None:
            return None
        return self.orchestrator.select_officer(strategy, request_id, config)

    def top_candidates(self, request_id: int, limit: int = 3) -> List[OfficerScore]:
        """Best-scored officers for a request with their score breakdowns."""
        config = self._load_settings()
        if config is None:
            return []
        try:
            return self.orchestrator.top_candidates(request_id, config, limit)
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Could not score candidates for request {request_id}", exc_info=True)
            return []

    def auto_assign_request(self, request_id: int, triggered_by_id: Optional[int] = None) -> bool:
        config = self._load_settings()
        if config is None:
            return False
        return self.orchestrator.auto_assign_request(request_id, triggered_by_id, config)

    def auto_assign_pending_requests(self, triggered_by_id: Optional[int] = None) -> int:
        """Assign all unassigned pending requests. Returns how many were assigned."""
        config = self._load_settings()
        if config is None:
            return 0
        return self.orchestrator.auto_assign_pending_requests(triggered_by_id, config)

    def on_request_approved(self, request_id: int, triggered_by_id: Optional[int] = None) -> bool:
        """Approval-flow hook: auto-assign when auto_assign_on_approval is set."""
        config = self._load_settings()
        if config is None or not config.auto_assign_on_approval:
            return False
        return self.orchestrator.auto_assign_request(request_id, triggered_by_id, config)

    # =============================================================================
    # Learning and analytics
    # =============================================================================

    def learn_from_assignment(
        self,
        request_id: int,
        was_successful: bool,
        feedback_score: Optional[float] = None
    ) -> bool:
        config = self._load_settings()
        if config is None:
            return False
        return self.learning.learn_from_assignment(request_id, was_successful, feedback_score, config)

    def get_ai_analytics(self) -> AIAnalytics:
        """Assignment totals, top performers and per-strategy statistics."""
        try:
            return build_ai_analytics(self.metrics, self.logs)
        finally:
            self.db.rollback()


def get_load_balancing_service(db: Session) -> LoadBalancingService:
    """Get a LoadBalancingService instance with the given database session."""
    return LoadBalancingService(db)

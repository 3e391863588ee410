"""
Assignment orchestrator.

Applies a strategy's chosen officer to a request:
- Builds the officer pool with fresh workload counts and metrics
- Selects an officer with the configured strategy
- Writes assignee, status history, assignment log and metrics in one transaction
- Assigns all pending requests sequentially, one transaction per request
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smart_assign.balancing.clock import local_hour, to_storage
from smart_assign.balancing.complexity import analyze_request_complexity, primary_category
from smart_assign.balancing.config import ASSIGNED_STATUS
from smart_assign.balancing.models import (
    LoadBalancingConfig, OfficerProfile, OfficerScore, Selection
)
from smart_assign.balancing.strategies import (
    AISmartStrategy, AssignmentStrategy, SelectionContext, get_strategy
)
from smart_assign.db.repositories import (
    AssignmentLogStore, ConfigRepository, MetricsStore, OfficerDirectory, RequestStore
)

logger = logging.getLogger(__name__)


class AssignmentOrchestrator:
    """Selects officers and applies assignments."""

    def __init__(
        self,
        db: Session,
        officers: OfficerDirectory,
        requests: RequestStore,
        config_repo: ConfigRepository,
        metrics: MetricsStore,
        logs: AssignmentLogStore,
        clock: Callable[[], datetime],
        rng: random.Random,
        capacity: int,
        timezone_name: str,
        pending_status: str
    ):
        self.db = db
        self.officers = officers
        self.requests = requests
        self.config_repo = config_repo
        self.metrics = metrics
        self.logs = logs
        self.clock = clock
        self.rng = rng
        self.capacity = capacity
        self.timezone_name = timezone_name
        self.pending_status = pending_status

    # =============================================================================
    # Selection
    # =============================================================================

    def build_pool(self, strategy: AssignmentStrategy) -> List[OfficerProfile]:
        """
        Eligible officers with what the strategy needs.

        Workload is counted from the request table on every call, never
        taken from the cached metrics counter.
        """
        pool = []
        for officer in self.officers.list_officers():
            profile = {"officer_id": officer.id, "name": officer.name or "Unknown"}

            if strategy.needs_workload:
                profile["current_workload"] = self.requests.count_active_assignments(officer.id)

            if strategy.needs_metrics:
                metrics = self.metrics.get_or_create(officer.id)
                profile.update(
                    success_rate=metrics.success_rate,
                    efficiency_score=metrics.efficiency_score,
                    average_completion_time=metrics.average_completion_time,
                    complexity_handling=metrics.complexity_handling,
                    category_expertise=metrics.category_expertise or {},
                    peak_performance_hours=metrics.peak_performance_hours or [],
                    last_assigned_at=metrics.last_assigned_at,
                )

            pool.append(OfficerProfile(**profile))
        return pool

    def _context(self, request_id: int, request: Optional[Any], config: LoadBalancingConfig) -> SelectionContext:
        now = self.clock()
        return SelectionContext(
            request_id=request_id,
            request=request,
            complexity=analyze_request_complexity(request),
            category=primary_category(request),
            config=config,
            capacity=self.capacity,
            now=now,
            current_hour=local_hour(now, self.timezone_name),
            advance_cursor=self.config_repo.advance_round_robin,
            rng=self.rng,
        )

    def choose(
        self,
        strategy_name: Any,
        request_id: int,
        config: LoadBalancingConfig,
        request: Optional[Any] = None
    ) -> Optional[Selection]:
        """
        Run one strategy for one request inside the caller's transaction.

        Returns None when no officer is eligible. Low-confidence picks are
        returned flagged, not rejected.
        """
        strategy = get_strategy(strategy_name)
        if request is None:
            request = self.requests.get_request(request_id)

        pool = self.build_pool(strategy)
        if not pool:
            logger.warning(f"No procurement officers available for request {request_id}")
            return None

        candidate = strategy.select(pool, self._context(request_id, request, config))
        if candidate is None:
            logger.warning(f"{strategy.name.value} found no candidate for request {request_id}")
            return None

        flagged = candidate.confidence < config.min_confidence_score
        if flagged:
            logger.warning(
                f"Assignment confidence ({candidate.confidence * 100:.0f}%) for request {request_id} "
                f"below threshold ({config.min_confidence_score * 100:.0f}%), flagged for review"
            )

        return Selection(
            officer_id=candidate.officer_id,
            confidence=candidate.confidence,
            predicted_time=candidate.predicted_time,
            strategy=strategy.name,
            flagged_for_review=flagged,
        )

    def select_officer(
        self,
        strategy_name: Any,
        request_id: int,
        config: LoadBalancingConfig
    ) -> Optional[Selection]:
        """Standalone selection; persists the round-robin cursor and any new metrics rows."""
        try:
            selection = self.choose(strategy_name, request_id, config)
            self.db.commit()
            return selection
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Officer selection failed for request {request_id}", exc_info=True)
            return None

    def top_candidates(self, request_id: int, config: LoadBalancingConfig, limit: int = 3) -> List[OfficerScore]:
        """Best AI_SMART candidates for a request, for operator review."""
        strategy = AISmartStrategy()
        request = self.requests.get_request(request_id)
        pool = self.build_pool(strategy)
        ranked = strategy.rank(pool, self._context(request_id, request, config))
        self.db.commit()
        return ranked[:limit]

    # =============================================================================
    # Assignment
    # =============================================================================

    def auto_assign_request(
        self,
        request_id: int,
        triggered_by_id: Optional[int],
        config: LoadBalancingConfig
    ) -> bool:
        """
        Assign a request with the configured strategy.

        Returns False when load balancing is disabled, the request does not
        exist, no officer is eligible, or the store fails.
        """
        if not config.enabled:
            logger.info(f"Auto-assignment disabled for request {request_id}")
            return False

        stage = "select"
        selection = None
        try:
            request = self.requests.get_request(request_id)
            if request is None:
                logger.warning(f"Request {request_id} not found, nothing to assign")
                self.db.rollback()
                return False

            selection = self.choose(config.strategy, request_id, config, request=request)
            if selection is None:
                self.db.rollback()
                return False

            officer = self.officers.get_officer(selection.officer_id)
            officer_name = (officer.name if officer else None) or "officer"
            assigned_at = to_storage(self.clock())

            comment = (
                f"Auto-assigned to {officer_name} using {selection.strategy.value} "
                f"(confidence: {selection.confidence * 100:.0f}%)"
            )
            if selection.flagged_for_review:
                comment += " - flagged for review: below minimum confidence"

            stage = "update_request"
            self.requests.assign(request, selection.officer_id, triggered_by_id, ASSIGNED_STATUS, comment)

            stage = "append_log"
            self.logs.append(
                request_id=request_id,
                officer_id=selection.officer_id,
                strategy=selection.strategy.value,
                confidence_score=selection.confidence,
                predicted_completion_time=selection.predicted_time,
                flagged_for_review=selection.flagged_for_review,
                assigned_at=assigned_at,
            )
            self.db.flush()

            stage = "update_metrics"
            workload = self.requests.count_active_assignments(selection.officer_id)
            self.metrics.record_assignment(selection.officer_id, workload, assigned_at)

            stage = "commit"
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            intended = selection.officer_id if selection else None
            logger.error(
                f"Auto-assignment failed for request {request_id} "
                f"(intended officer: {intended}, stage: {stage})",
                exc_info=True
            )
            return False

        logger.info(
            f"Request {request_id} auto-assigned to officer {selection.officer_id} "
            f"using {selection.strategy.value} (confidence: {selection.confidence * 100:.0f}%)"
        )
        return True

    def auto_assign_pending_requests(
        self,
        triggered_by_id: Optional[int],
        config: LoadBalancingConfig
    ) -> int:
        """
        Assign every unassigned request waiting for procurement.

        Requests are processed one at a time so each scoring pass sees the
        workload created by the previous ones. A failure on one request does
        not stop the batch.
        """
        if not config.enabled:
            return 0

        try:
            pending = self.requests.list_unassigned(self.pending_status)
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Could not load pending requests", exc_info=True)
            return 0

        # Each request below runs in its own transaction
        self.db.rollback()

        assigned_count = 0
        for request_id in pending:
            if self.auto_assign_request(request_id, triggered_by_id, config):
                assigned_count += 1

        logger.info(f"Auto-assigned {assigned_count} of {len(pending)} pending requests")
        return assigned_count

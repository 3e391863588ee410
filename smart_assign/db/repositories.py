"""
Store classes used by the load-balancing engine.

Each class wraps a SQLAlchemy session and covers one collaborator:
officers, requests, the settings row, officer metrics and assignment logs.
Stores never commit; the calling service owns the transaction.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy import select, update, func, desc, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from smart_assign.db.models import (
    User, Role, UserRole, Request, RequestStatusHistory,
    OfficerPerformanceMetrics, AssignmentLog, LoadBalancingSettings
)
from smart_assign.balancing.models import (
    LoadBalancingConfig, ScoringWeights, resolve_strategy
)


# Seed values for an officer seen for the first time
DEFAULT_METRICS: Dict[str, Any] = {
    "total_assignments": 0,
    "completed_assignments": 0,
    "average_completion_time": 24.0,
    "success_rate": 0.9,
    "current_workload": 0,
    "average_response_time": 2.0,
    "quality_score": 0.8,
    "efficiency_score": 0.8,
    "complexity_handling": 0.5,
}
DEFAULT_PEAK_HOURS = [9, 10, 11, 14, 15]


class OfficerDirectory:
    """Lists users holding the procurement-officer role."""

    def __init__(self, db: Session, role_name: str):
        self.db = db
        self.role_name = role_name

    def list_officers(self) -> List[User]:
        """Officers ordered by id."""
        stmt = (
            select(User)
            .join(UserRole, UserRole.user_id == User.id)
            .join(Role, Role.id == UserRole.role_id)
            .where(Role.name == self.role_name)
            .order_by(User.id)
        )
        return list(self.db.scalars(stmt).unique())

    def get_officer(self, officer_id: int) -> Optional[User]:
        return self.db.get(User, officer_id)


class RequestStore:
    """Reads requests and applies the narrow assignee/status-history mutation."""

    def __init__(self, db: Session, active_statuses: Iterable[str]):
        self.db = db
        self.active_statuses = tuple(active_statuses)

    def get_request(self, request_id: int) -> Optional[Request]:
        stmt = (
            select(Request)
            .options(selectinload(Request.items))
            .where(Request.id == request_id)
        )
        return self.db.scalars(stmt).first()

    def count_active_assignments(self, officer_id: int) -> int:
        """Count requests assigned to an officer in an active status."""
        stmt = select(func.count(Request.id)).where(
            Request.current_assignee_id == officer_id,
            Request.status.in_(self.active_statuses),
        )
        return int(self.db.scalar(stmt) or 0)

    def list_unassigned(self, status: str) -> List[int]:
        """Ids of requests in `status` that have no assignee, oldest first."""
        stmt = (
            select(Request.id)
            .where(Request.status == status, Request.current_assignee_id.is_(None))
            .order_by(Request.id)
        )
        return list(self.db.scalars(stmt))

    def assign(
        self,
        request: Request,
        officer_id: int,
        changed_by_id: Optional[int],
        status: str,
        comment: str
    ) -> RequestStatusHistory:
        """Set the assignee and append a status-history entry."""
        request.current_assignee_id = officer_id
        entry = RequestStatusHistory(
            request_id=request.id,
            status=status,
            changed_by_id=changed_by_id,
            comment=comment,
        )
        self.db.add(entry)
        return entry


class ConfigRepository:
    """
    Owns the singleton load-balancing settings row.

    Replacement updates the row in place; the mapper's version counter
    rejects a concurrent writer with StaleDataError instead of letting
    delete-then-insert race with readers.
    """

    def __init__(self, db: Session):
        self.db = db

    def _current_row(self) -> Optional[LoadBalancingSettings]:
        stmt = select(LoadBalancingSettings).order_by(desc(LoadBalancingSettings.id)).limit(1)
        return self.db.scalars(stmt).first()

    def get(self) -> LoadBalancingConfig:
        """Active config, or the documented defaults when none is stored."""
        row = self._current_row()
        if row is None:
            return LoadBalancingConfig()
        return _row_to_config(row)

    def get_version(self) -> Optional[int]:
        row = self._current_row()
        return row.version if row else None

    def replace(
        self,
        config: LoadBalancingConfig,
        updated_at: datetime,
        updated_by_id: Optional[int] = None
    ) -> LoadBalancingConfig:
        """Replace the active config and reset the round-robin cursor."""
        row = self._current_row()
        if row is None:
            row = LoadBalancingSettings()
            self.db.add(row)

        row.enabled = config.enabled
        row.strategy = config.strategy.value
        row.auto_assign_on_approval = config.auto_assign_on_approval
        row.learning_enabled = config.learning_enabled
        row.workload_weighting = config.weights.workload
        row.performance_weighting = config.weights.performance
        row.specialty_weighting = config.weights.specialty
        row.priority_weighting = config.weights.priority
        row.min_confidence_score = config.min_confidence_score
        row.round_robin_index = 0
        row.updated_by_id = updated_by_id
        row.updated_at = updated_at
        self.db.flush()
        return _row_to_config(row)

    def advance_round_robin(self) -> int:
        """
        Atomically increment the round-robin cursor and return the new value.

        The increment is a single UPDATE, so the row stays locked until the
        surrounding transaction ends and no two callers read the same value.
        """
        row = self._current_row()
        if row is None:
            row = LoadBalancingSettings(round_robin_index=0)
            self.db.add(row)
            self.db.flush()
        settings_table = LoadBalancingSettings.__table__
        self.db.execute(
            update(settings_table)
            .where(settings_table.c.id == row.id)
            .values(round_robin_index=settings_table.c.round_robin_index + 1)
        )
        self.db.expire(row, ["round_robin_index"])
        return int(self.db.scalar(
            select(settings_table.c.round_robin_index).where(settings_table.c.id == row.id)
        ))


def _row_to_config(row: LoadBalancingSettings) -> LoadBalancingConfig:
    return LoadBalancingConfig(
        enabled=row.enabled,
        strategy=resolve_strategy(row.strategy),
        auto_assign_on_approval=row.auto_assign_on_approval,
        learning_enabled=row.learning_enabled,
        weights=ScoringWeights(
            workload=row.workload_weighting,
            performance=row.performance_weighting,
            specialty=row.specialty_weighting,
            priority=row.priority_weighting,
        ),
        min_confidence_score=row.min_confidence_score,
    )


class MetricsStore:
    """Per-officer performance metrics with atomic single-row updates."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, officer_id: int) -> Optional[OfficerPerformanceMetrics]:
        stmt = select(OfficerPerformanceMetrics).where(
            OfficerPerformanceMetrics.officer_id == officer_id
        )
        return self.db.scalars(stmt).first()

    def get_or_create(self, officer_id: int) -> OfficerPerformanceMetrics:
        """Return the officer's metrics, creating seeded defaults on first use."""
        metrics = self.get(officer_id)
        if metrics is not None:
            return metrics

        try:
            with self.db.begin_nested():
                metrics = OfficerPerformanceMetrics(
                    officer_id=officer_id,
                    category_expertise={},
                    peak_performance_hours=list(DEFAULT_PEAK_HOURS),
                    **DEFAULT_METRICS
                )
                self.db.add(metrics)
        except IntegrityError:
            # Another transaction created the row first
            metrics = self.get(officer_id)
        return metrics

    def record_assignment(self, officer_id: int, current_workload: int, assigned_at: datetime) -> None:
        """Store the recomputed workload, bump total assignments, stamp last assignment."""
        metrics = self.get_or_create(officer_id)
        self.db.execute(
            update(OfficerPerformanceMetrics)
            .where(OfficerPerformanceMetrics.officer_id == officer_id)
            .values(
                current_workload=current_workload,
                total_assignments=OfficerPerformanceMetrics.total_assignments + 1,
                last_assigned_at=assigned_at,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.expire(metrics)

    def record_completion(
        self,
        officer_id: int,
        was_successful: bool,
        completion_hours: float,
        updated_at: datetime
    ) -> None:
        """
        Fold one completed assignment into the running averages.

        Right-hand sides of an UPDATE see the pre-update row, so the
        incremental-average formulas and the counter bump apply atomically.
        """
        metrics = self.get_or_create(officer_id)
        m = OfficerPerformanceMetrics
        outcome = 1.0 if was_successful else 0.0
        self.db.execute(
            update(m)
            .where(m.officer_id == officer_id)
            .values(
                success_rate=(m.success_rate * m.completed_assignments + outcome)
                / (m.completed_assignments + 1),
                average_completion_time=(m.average_completion_time * m.completed_assignments + completion_hours)
                / (m.completed_assignments + 1),
                completed_assignments=m.completed_assignments + 1,
                last_performance_update=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.expire(metrics)

    def top_by_success_rate(self, limit: int = 5) -> List[OfficerPerformanceMetrics]:
        stmt = (
            select(OfficerPerformanceMetrics)
            .options(selectinload(OfficerPerformanceMetrics.officer))
            .order_by(desc(OfficerPerformanceMetrics.success_rate), OfficerPerformanceMetrics.officer_id)
            .limit(limit)
        )
        return list(self.db.scalars(stmt))


class AssignmentLogStore:
    """Append-only assignment log with a single completion update."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        request_id: int,
        officer_id: int,
        strategy: str,
        confidence_score: float,
        predicted_completion_time: Optional[float],
        flagged_for_review: bool,
        assigned_at: datetime
    ) -> AssignmentLog:
        log = AssignmentLog(
            request_id=request_id,
            officer_id=officer_id,
            strategy=strategy,
            confidence_score=confidence_score,
            predicted_completion_time=predicted_completion_time,
            flagged_for_review=flagged_for_review,
            assigned_at=assigned_at,
        )
        self.db.add(log)
        return log

    def find_latest(self, request_id: int) -> Optional[AssignmentLog]:
        stmt = (
            select(AssignmentLog)
            .where(AssignmentLog.request_id == request_id)
            .order_by(desc(AssignmentLog.assigned_at), desc(AssignmentLog.id))
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def mark_completed(
        self,
        log_id: int,
        completed_at: datetime,
        actual_completion_time: float,
        was_successful: bool,
        feedback_score: Optional[float]
    ) -> bool:
        """Complete a log row once. Returns False if it was already completed."""
        result = self.db.execute(
            update(AssignmentLog)
            .where(AssignmentLog.id == log_id, AssignmentLog.completed_at.is_(None))
            .values(
                completed_at=completed_at,
                actual_completion_time=actual_completion_time,
                was_successful=was_successful,
                feedback_score=feedback_score,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def summary(self) -> Dict[str, Any]:
        """Total count, average confidence and flagged count over all rows."""
        total, avg_confidence, flagged = self.db.execute(
            select(
                func.count(AssignmentLog.id),
                func.avg(AssignmentLog.confidence_score),
                func.sum(case((AssignmentLog.flagged_for_review.is_(True), 1), else_=0)),
            )
        ).one()
        return {
            "total": int(total or 0),
            "average_confidence": float(avg_confidence or 0.0),
            "flagged": int(flagged or 0),
        }

    def strategy_breakdown(self) -> List[Dict[str, Any]]:
        stmt = (
            select(
                AssignmentLog.strategy,
                func.count(AssignmentLog.id),
                func.avg(AssignmentLog.confidence_score),
            )
            .group_by(AssignmentLog.strategy)
            .order_by(AssignmentLog.strategy)
        )
        return [
            {"strategy": strategy, "count": int(count), "average_confidence": float(avg or 0.0)}
            for strategy, count, avg in self.db.execute(stmt)
        ]

"""
Learning feedback loop.

Folds completed-assignment outcomes back into officer performance metrics.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smart_assign.balancing.clock import hours_between, to_storage
from smart_assign.balancing.models import LoadBalancingConfig
from smart_assign.db.repositories import AssignmentLogStore, MetricsStore

logger = logging.getLogger(__name__)


class LearningFeedbackLoop:
    """Folds assignment outcomes into officer metrics."""

    def __init__(
        self,
        db: Session,
        metrics: MetricsStore,
        logs: AssignmentLogStore,
        clock: Callable[[], datetime]
    ):
        self.db = db
        self.metrics = metrics
        self.logs = logs
        self.clock = clock

    def learn_from_assignment(
        self,
        request_id: int,
        was_successful: bool,
        feedback_score: Optional[float],
        config: LoadBalancingConfig
    ) -> bool:
        """
        Record the outcome of a request's latest assignment.

        Returns True when the log was completed and the officer's running
        averages were updated. A log that is already completed is left alone,
        so calling this twice for the same assignment counts it once.
        """
        if not config.learning_enabled:
            logger.debug(f"Learning disabled, ignoring outcome for request {request_id}")
            return False

        try:
            log = self.logs.find_latest(request_id)
            if log is None:
                logger.info(f"No assignment log for request {request_id}, nothing to learn")
                self.db.rollback()
                return False

            if log.completed_at is not None:
                logger.warning(
                    f"Assignment log {log.id} for request {request_id} already completed, "
                    f"ignoring repeated outcome"
                )
                self.db.rollback()
                return False

            now = self.clock()
            completion_hours = hours_between(log.assigned_at, now)
            officer_id = log.officer_id

            if not self.logs.mark_completed(
                log.id,
                completed_at=to_storage(now),
                actual_completion_time=completion_hours,
                was_successful=was_successful,
                feedback_score=feedback_score,
            ):
                # Completed concurrently between the read and the update
                self.db.rollback()
                logger.warning(f"Assignment log {log.id} completed concurrently, skipping")
                return False

            self.metrics.record_completion(officer_id, was_successful, completion_hours, to_storage(now))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Learning update failed for request {request_id}", exc_info=True)
            return False

        logger.info(
            f"Updated metrics for officer {officer_id}: "
            f"{'success' if was_successful else 'failure'} in {completion_hours:.1f}h"
        )
        return True

"""Read-only reporting over assignment logs and officer metrics."""

from smart_assign.balancing.models import AIAnalytics, StrategyStats, TopPerformer
from smart_assign.db.repositories import AssignmentLogStore, MetricsStore

TOP_PERFORMERS_LIMIT = 5


def build_ai_analytics(metrics: MetricsStore, logs: AssignmentLogStore) -> AIAnalytics:
    summary = logs.summary()

    top_performers = []
    for row in metrics.top_by_success_rate(TOP_PERFORMERS_LIMIT):
        officer = row.officer
        top_performers.append(TopPerformer(
            officer_id=row.officer_id,
            name=officer.name if officer else None,
            email=officer.email if officer else None,
            success_rate=row.success_rate,
            average_completion_time=row.average_completion_time,
            total_assignments=row.total_assignments,
            efficiency_score=row.efficiency_score,
            quality_score=row.quality_score,
            average_response_time=row.average_response_time,
        ))

    return AIAnalytics(
        total_assignments=summary["total"],
        average_confidence=summary["average_confidence"],
        flagged_assignments=summary["flagged"],
        top_performers=top_performers,
        strategy_performance=[StrategyStats(**stats) for stats in logs.strategy_breakdown()],
    )

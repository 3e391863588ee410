"""Database package for the load-balancing engine."""

from smart_assign.db.database import get_db, init_db, get_session, enable_sqlite_savepoints
from smart_assign.db.models import (
    Base, User, Role, UserRole, Request, RequestItem, RequestStatusHistory,
    OfficerPerformanceMetrics, AssignmentLog, LoadBalancingSettings
)

__all__ = [
    "get_db",
    "init_db",
    "get_session",
    "enable_sqlite_savepoints",
    "Base",
    "User",
    "Role",
    "UserRole",
    "Request",
    "RequestItem",
    "RequestStatusHistory",
    "OfficerPerformanceMetrics",
    "AssignmentLog",
    "LoadBalancingSettings",
]

"""
Database models for the load-balancing engine.

Users, roles and requests belong to the surrounding procurement workflow and
are only read (or narrowly mutated) here. Performance metrics, assignment logs
and the load-balancing settings row are owned by the engine.
"""

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean,
    JSON, Float, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """A user of the procurement application."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=True)

    roles = relationship("UserRole", back_populates="user")


class Role(Base):
    """A named capability such as PROCUREMENT."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False, index=True)


class UserRole(Base):
    """Links users to roles (many-to-many relationship)."""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)

    user = relationship("User", back_populates="roles")
    role = relationship("Role")


class Request(Base):
    """A procurement request moving through the approval workflow."""
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True)
    reference = Column(String(100), unique=True, nullable=True)
    title = Column(String(500), nullable=True)
    status = Column(String(100), nullable=False, index=True)  # 'PROCUREMENT_REVIEW', 'SENT_TO_VENDOR', ...
    priority = Column(String(50), nullable=True)  # 'NORMAL', 'HIGH', 'URGENT'
    current_assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    items = relationship("RequestItem", back_populates="request", order_by="RequestItem.id")
    status_history = relationship(
        "RequestStatusHistory", back_populates="request", order_by="RequestStatusHistory.id"
    )
    current_assignee = relationship("User")


class RequestItem(Base):
    """A line item on a request."""
    __tablename__ = "request_items"

    id = Column(Integer, primary_key=True)
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    category = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False, default=0.0)

    request = relationship("Request", back_populates="items")


class RequestStatusHistory(Base):
    """Append-only status trail of a request."""
    __tablename__ = "request_status_history"

    id = Column(Integer, primary_key=True)
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, index=True)
    status = Column(String(100), nullable=False)
    changed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    request = relationship("Request", back_populates="status_history")


class OfficerPerformanceMetrics(Base):
    """Running performance record of one procurement officer."""
    __tablename__ = "officer_performance_metrics"

    id = Column(Integer, primary_key=True)
    officer_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    total_assignments = Column(Integer, nullable=False, default=0)
    completed_assignments = Column(Integer, nullable=False, default=0)
    average_completion_time = Column(Float, nullable=False, default=24.0)  # hours
    success_rate = Column(Float, nullable=False, default=0.9)
    current_workload = Column(Integer, nullable=False, default=0)
    category_expertise = Column(JSON, nullable=False, default=dict)  # {"IT Equipment": 0.9}
    average_response_time = Column(Float, nullable=False, default=2.0)  # hours
    quality_score = Column(Float, nullable=False, default=0.8)
    efficiency_score = Column(Float, nullable=False, default=0.8)
    complexity_handling = Column(Float, nullable=False, default=0.5)
    peak_performance_hours = Column(JSON, nullable=False, default=list)  # hours of day 0-23
    last_assigned_at = Column(DateTime, nullable=True)
    last_performance_update = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    officer = relationship("User")


class AssignmentLog(Base):
    """One row per assignment decision; completed once the request finishes."""
    __tablename__ = "request_assignment_logs"

    id = Column(Integer, primary_key=True)
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, index=True)
    officer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    strategy = Column(String(50), nullable=False, index=True)
    confidence_score = Column(Float, nullable=False)
    predicted_completion_time = Column(Float, nullable=True)  # hours
    flagged_for_review = Column(Boolean, nullable=False, default=False)
    assigned_at = Column(DateTime, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    actual_completion_time = Column(Float, nullable=True)  # hours
    was_successful = Column(Boolean, nullable=True)
    feedback_score = Column(Float, nullable=True)


class LoadBalancingSettings(Base):
    """The single active load-balancing configuration row."""
    __tablename__ = "load_balancing_settings"

    id = Column(Integer, primary_key=True)
    enabled = Column(Boolean, nullable=False, default=False)
    strategy = Column(String(50), nullable=False, default="AI_SMART")
    auto_assign_on_approval = Column(Boolean, nullable=False, default=True)
    learning_enabled = Column(Boolean, nullable=False, default=True)
    workload_weighting = Column(Float, nullable=False, default=1.2)
    performance_weighting = Column(Float, nullable=False, default=1.5)
    specialty_weighting = Column(Float, nullable=False, default=1.3)
    priority_weighting = Column(Float, nullable=False, default=1.0)
    min_confidence_score = Column(Float, nullable=False, default=0.6)
    round_robin_index = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)
    updated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

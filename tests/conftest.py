"""
Pytest fixtures for the load-balancing test suite.

Provides:
- An in-memory SQLite session per test (tables created fresh)
- A fixed clock inside the default peak hours
- Factories for officers and procurement requests
"""

import random
from datetime import datetime, timezone
from typing import Generator, Iterable, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from smart_assign.balancing.service import LoadBalancingService
from smart_assign.db.database import enable_sqlite_savepoints
from smart_assign.db.models import (
    Base, Request, RequestItem, Role, User, UserRole
)

# Monday 10:00 UTC, inside DEFAULT_PEAK_HOURS
FIXED_NOW = datetime(2024, 6, 3, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for deterministic timestamps."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def engine():
    engine = enable_sqlite_savepoints(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(db, clock) -> LoadBalancingService:
    return LoadBalancingService(db, clock=clock, rng=random.Random(42))


@pytest.fixture
def procurement_role(db) -> Role:
    role = Role(name="PROCUREMENT")
    db.add(role)
    db.commit()
    return role


@pytest.fixture
def make_officer(db, procurement_role):
    """Create a user holding the procurement role."""
    def _make(name: str, email: Optional[str] = None) -> User:
        user = User(name=name, email=email or f"{name.lower().replace(' ', '.')}@example.com")
        db.add(user)
        db.flush()
        db.add(UserRole(user_id=user.id, role_id=procurement_role.id))
        db.commit()
        return user
    return _make


@pytest.fixture
def make_request(db):
    """
    Create a request with line items.

    items are (description, category, total_price) tuples.
    """
    counter = {"n": 0}

    def _make(
        status: str = "PROCUREMENT_REVIEW",
        priority: Optional[str] = "NORMAL",
        items: Iterable[Tuple[str, Optional[str], float]] = (("Laptop", "IT Equipment", 1500.0),),
        assignee_id: Optional[int] = None
    ) -> Request:
        counter["n"] += 1
        request = Request(
            reference=f"PR-{counter['n']:04d}",
            title=f"Request {counter['n']}",
            status=status,
            priority=priority,
            current_assignee_id=assignee_id,
        )
        db.add(request)
        db.flush()
        for description, category, total_price in items:
            db.add(RequestItem(
                request_id=request.id,
                description=description,
                category=category,
                quantity=1,
                unit_price=total_price,
                total_price=total_price,
            ))
        db.commit()
        return request
    return _make


@pytest.fixture
def enable_balancing(service):
    """Turn load balancing on with the given strategy."""
    def _enable(strategy: str = "AI_SMART", **overrides):
        return service.update_settings({"enabled": True, "strategy": strategy, **overrides})
    return _enable

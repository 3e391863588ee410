"""
Database connection and initialization utilities.
"""

import os
from pathlib import Path
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from dotenv import load_dotenv

# Load environment variables
project_root = Path(__file__).parent.parent.parent
load_dotenv(project_root / ".env")

# Database configuration
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{project_root / 'smart_assign.db'}"  # Default to SQLite
)


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Let SQLAlchemy control SQLite transactions.

    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT. Metrics creation relies on nested transactions, so the
    driver's own transaction handling is switched off and BEGIN is emitted
    explicitly.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


# Create engine
engine = enable_sqlite_savepoints(create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
    echo=os.getenv("DB_ECHO", "false").lower() == "true"  # Set DB_ECHO=true for SQL logging
))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None) -> str:
    """Initialize database - create all tables. Returns the database URL."""
    from smart_assign.db.models import Base
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    return bind.url.render_as_string(hide_password=True)


def get_session() -> Session:
    """Get a new database session."""
    return SessionLocal()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session.
    Use in request handlers or context managers.

    Example:
        for db in get_db():
            service = get_load_balancing_service(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

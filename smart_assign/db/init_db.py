"""
Database initialization script.

Run this to create the database tables:
    python -m smart_assign.db.init_db
"""

import logging
import os

from smart_assign.db.database import init_db

logger = logging.getLogger(__name__)


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    logger.info("Initializing database...")
    url = init_db()
    logger.info(f"Database initialized at: {url}")

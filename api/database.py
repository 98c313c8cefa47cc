"""
Database connection management for the API.
"""
import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from listings.database import db_connect, db_init

from .config import config

logger = logging.getLogger(__name__)


@contextmanager
def get_db_connection() -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper error handling."""
    conn = None
    try:
        if not config.DB_PATH:
            raise ValueError("Database path not configured")

        conn = db_connect(config.DB_PATH)
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()


def get_db() -> Iterator[sqlite3.Connection]:
    """FastAPI dependency: one connection per request."""
    with get_db_connection() as conn:
        yield conn


def init_database():
    """Create tables and indexes if missing."""
    with get_db_connection() as conn:
        db_init(conn)

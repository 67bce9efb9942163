"""
Database module.
Contains database connection, models, and the durable job store.
"""

from printqueue.db.connection import (
    close_db,
    create_schema,
    create_session_factory,
    get_engine,
    init_db,
)
from printqueue.db.models import Base, Job
from printqueue.db.repository import JobRepository

__all__ = [
    "get_engine",
    "init_db",
    "close_db",
    "create_schema",
    "create_session_factory",
    "Job",
    "Base",
    "JobRepository",
]

"""
Store selection shared by the API and worker processes.
"""

import logging

from printqueue.config import Settings
from printqueue.db import close_db, init_db
from printqueue.db.connection import get_engine
from printqueue.db.repository import JobRepository
from printqueue.observability.tracing import instrument_sqlalchemy
from printqueue.store.base import JobStore
from printqueue.store.memory import InMemoryJobStore

logger = logging.getLogger(__name__)


async def open_store(settings: Settings) -> JobStore:
    """
    Create the configured job store.

    The PostgreSQL backend prepares its schema first and raises
    FatalInitError when that fails, so callers never serve against a
    missing table.
    """
    if settings.store_backend == "memory":
        logger.warning("Using in-memory job store, jobs will not survive a restart")
        return InMemoryJobStore()

    session_factory = await init_db()
    instrument_sqlalchemy(get_engine())
    return JobRepository(session_factory)


async def close_store(settings: Settings) -> None:
    """Release resources held by the configured store."""
    if settings.store_backend == "postgres":
        await close_db()

"""
Store module.
Contains the store interface and the in-memory implementation.
"""

from printqueue.store.base import JobStore
from printqueue.store.memory import InMemoryJobStore

__all__ = ["JobStore", "InMemoryJobStore"]

"""
In-process job store.

A non-durable backend for tests and single-process deployments. Every
check-and-flip happens while holding one mutual-exclusion lock, with no
await between the check and the write.
"""

import itertools
import threading
from collections import Counter
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID

from printqueue.constants import JobStatus
from printqueue.exceptions import DuplicateKeyError
from printqueue.store.base import JobStore
from printqueue.types.job import JobRecord


class InMemoryJobStore(JobStore):
    """
    JobStore backed by dictionaries and a threading lock.

    The lock is a threading.Lock rather than an asyncio.Lock so the store
    stays safe when shared between event loops running in several threads.
    Records are copied on the way in and out so callers never alias
    internal state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: dict[UUID, JobRecord] = {}
        self._keys: dict[str, UUID] = {}
        # Insertion sequence breaks ties between equal timestamps
        self._sequence: dict[UUID, int] = {}
        self._counter = itertools.count()

    async def insert(self, job: JobRecord) -> JobRecord:
        with self._lock:
            if job.dedup_key is not None and job.dedup_key in self._keys:
                raise DuplicateKeyError(job.dedup_key, self._keys[job.dedup_key])
            if job.id in self._jobs:
                raise ValueError(f"Job id {job.id} already exists")

            stored = replace(
                job,
                status=JobStatus.PENDING,
                tries=0,
                created_at=datetime.now(UTC),
            )
            self._jobs[stored.id] = stored
            self._sequence[stored.id] = next(self._counter)
            if stored.dedup_key is not None:
                self._keys[stored.dedup_key] = stored.id
            return replace(stored)

    async def get(self, job_id: UUID) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    async def find_by_key(self, dedup_key: str) -> JobRecord | None:
        with self._lock:
            job_id = self._keys.get(dedup_key)
            return replace(self._jobs[job_id]) if job_id is not None else None

    async def list_pending(self) -> list[JobRecord]:
        with self._lock:
            pending = [j for j in self._jobs.values() if j.status == JobStatus.PENDING]
            pending.sort(key=self._order_key)
            return [replace(j) for j in pending]

    async def claim_next(self, job_id: UUID | None = None) -> JobRecord | None:
        with self._lock:
            if job_id is not None:
                job = self._jobs.get(job_id)
                if job is None or job.status != JobStatus.PENDING:
                    return None
            else:
                pending = [j for j in self._jobs.values() if j.status == JobStatus.PENDING]
                if not pending:
                    return None
                job = min(pending, key=self._order_key)

            job.status = JobStatus.PROCESSING
            return replace(job)

    async def mark_done(self, job_id: UUID) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                return None
            job.status = JobStatus.DONE
            return replace(job)

    async def mark_failed(self, job_id: UUID) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                return None
            job.status = JobStatus.FAILED
            job.tries += 1
            return replace(job)

    async def count_by_status(self) -> dict[str, int]:
        with self._lock:
            counts = Counter(job.status.value for job in self._jobs.values())
            return dict(counts)

    def _order_key(self, job: JobRecord) -> tuple[datetime, int]:
        return job.created_at, self._sequence[job.id]

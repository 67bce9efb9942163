"""
Store interface shared by the durable and in-memory backends.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from printqueue.types.job import JobRecord


class JobStore(ABC):
    """
    Persistence contract for print jobs.

    Every method is a single atomic operation against the backend. State
    transitions are conditional: they only apply when the job is currently
    in the expected source state, so concurrent callers can never both win.
    Stores never retry; persistence faults surface as TransientStoreError.
    """

    @abstractmethod
    async def insert(self, job: JobRecord) -> JobRecord:
        """
        Persist a new PENDING job with zero tries.

        Raises:
            DuplicateKeyError: If job.dedup_key is already used. No row is
                created and the error carries the surviving job's id.
        """

    @abstractmethod
    async def get(self, job_id: UUID) -> JobRecord | None:
        """Point lookup by id."""

    @abstractmethod
    async def find_by_key(self, dedup_key: str) -> JobRecord | None:
        """Point lookup by dedup key."""

    @abstractmethod
    async def list_pending(self) -> list[JobRecord]:
        """Pending jobs, oldest first. For visibility only, never for claiming."""

    @abstractmethod
    async def claim_next(self, job_id: UUID | None = None) -> JobRecord | None:
        """
        Atomically flip one job from PENDING to PROCESSING.

        Args:
            job_id: Claim this specific job. When omitted, the oldest pending
                job by creation time is claimed.

        Returns:
            The claimed job, or None if no eligible job exists.
        """

    @abstractmethod
    async def mark_done(self, job_id: UUID) -> JobRecord | None:
        """
        Transition PROCESSING -> DONE.

        Only a PROCESSING job moves. A PENDING job is never completed without
        first being claimed, and on a terminal job this is a no-op.

        Returns:
            The updated job, or None if the job is missing or not PROCESSING.
        """

    @abstractmethod
    async def mark_failed(self, job_id: UUID) -> JobRecord | None:
        """
        Transition PROCESSING -> FAILED and increment tries in the same write.

        Returns:
            The updated job, or None if the job is missing or not PROCESSING.
        """

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        """Number of jobs per status."""

"""
Job repository for database operations.
Implements the JobStore contract on PostgreSQL.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from printqueue.constants import JobStatus
from printqueue.db.models import Job
from printqueue.exceptions import DuplicateKeyError, TransientStoreError
from printqueue.store.base import JobStore
from printqueue.types.job import JobRecord

logger = logging.getLogger(__name__)


class JobRepository(JobStore):
    """
    Durable job store.

    Every operation runs in its own short transaction and is expressed as a
    single conditional statement:
    - Submission with INSERT ... ON CONFLICT DO NOTHING on the dedup key
    - Claiming with a status-guarded UPDATE, using FOR UPDATE SKIP LOCKED
      when picking the oldest pending job
    - Done/failed transitions guarded on status = 'processing'
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize the repository with a session factory.

        Args:
            session_factory: Factory producing async database sessions.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession]:
        """
        Open a session and transaction, committing on success.

        Raises:
            TransientStoreError: On any connectivity or database fault,
                including an exhausted connection pool.
        """
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except (DBAPIError, PoolTimeoutError, OSError) as e:
            logger.error("Job store operation failed", extra={"error": str(e)})
            raise TransientStoreError(f"Job store unavailable: {e}") from e

    async def insert(self, job: JobRecord) -> JobRecord:
        """
        Insert a new pending job.

        Uses INSERT ... ON CONFLICT DO NOTHING so the uniqueness constraint,
        not a prior lookup, decides which submission wins.

        Args:
            job: The job to persist. Status, tries and created_at are ignored.

        Returns:
            The persisted job.

        Raises:
            DuplicateKeyError: If the dedup key is already used.
        """
        async with self._transaction() as session:
            stmt = (
                insert(Job)
                .values(
                    id=job.id,
                    dedup_key=job.dedup_key,
                    payload=job.payload,
                    target=job.target,
                    status=JobStatus.PENDING,
                    tries=0,
                )
                .on_conflict_do_nothing(constraint="uq_print_jobs_dedup_key")
                .returning(Job)
            )
            result = await session.execute(stmt)
            created = result.scalar_one_or_none()

            if created is not None:
                return created.to_record()

            existing = await self._select_by_key(session, job.dedup_key)
            if existing is None:
                raise RuntimeError("Job should exist after dedup conflict")

        raise DuplicateKeyError(job.dedup_key, existing.id)

    async def get(self, job_id: UUID) -> JobRecord | None:
        async with self._transaction() as session:
            result = await session.execute(select(Job).where(Job.id == job_id))
            job = result.scalar_one_or_none()
            return job.to_record() if job else None

    async def find_by_key(self, dedup_key: str) -> JobRecord | None:
        async with self._transaction() as session:
            job = await self._select_by_key(session, dedup_key)
            return job.to_record() if job else None

    async def list_pending(self) -> list[JobRecord]:
        async with self._transaction() as session:
            stmt = (
                select(Job)
                .where(Job.status == JobStatus.PENDING)
                .order_by(Job.created_at.asc(), Job.id.asc())
            )
            result = await session.execute(stmt)
            return [job.to_record() for job in result.scalars().all()]

    async def claim_next(self, job_id: UUID | None = None) -> JobRecord | None:
        """
        Flip one pending job to processing.

        This is the critical path for job distribution. The status guard in
        the WHERE clause makes the update a compare-and-swap, so two workers
        racing on the same job can never both succeed.

        Args:
            job_id: Specific job to claim, or None for the oldest pending job.

        Returns:
            The claimed job or None.
        """
        if job_id is not None:
            target = Job.id == job_id
        else:
            oldest = (
                select(Job.id)
                .where(Job.status == JobStatus.PENDING)
                .order_by(Job.created_at.asc(), Job.id.asc())
                .limit(1)
                .with_for_update(skip_locked=True)
                .scalar_subquery()
            )
            target = Job.id == oldest

        stmt = (
            update(Job)
            .where(and_(target, Job.status == JobStatus.PENDING))
            .values(status=JobStatus.PROCESSING)
            .returning(Job)
            .execution_options(synchronize_session=False)
        )

        async with self._transaction() as session:
            result = await session.execute(stmt)
            job = result.scalar_one_or_none()
            return job.to_record() if job else None

    async def mark_done(self, job_id: UUID) -> JobRecord | None:
        stmt = (
            update(Job)
            .where(and_(Job.id == job_id, Job.status == JobStatus.PROCESSING))
            .values(status=JobStatus.DONE)
            .returning(Job)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            job = result.scalar_one_or_none()
            return job.to_record() if job else None

    async def mark_failed(self, job_id: UUID) -> JobRecord | None:
        """
        Fail a processing job.

        Status change and tries increment happen in one UPDATE so they cannot
        interleave with a concurrent claim.
        """
        stmt = (
            update(Job)
            .where(and_(Job.id == job_id, Job.status == JobStatus.PROCESSING))
            .values(status=JobStatus.FAILED, tries=Job.tries + 1)
            .returning(Job)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            job = result.scalar_one_or_none()
            return job.to_record() if job else None

    async def count_by_status(self) -> dict[str, int]:
        async with self._transaction() as session:
            stmt = select(Job.status, func.count()).group_by(Job.status)
            result = await session.execute(stmt)
            return {JobStatus(status).value: count for status, count in result.all()}

    async def _select_by_key(self, session: AsyncSession, dedup_key: str) -> Job | None:
        result = await session.execute(select(Job).where(Job.dedup_key == dedup_key))
        return result.scalar_one_or_none()

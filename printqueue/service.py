"""
Queue service.

Orchestrates submit/claim/complete/fail on top of a JobStore. The service
holds no locks of its own: exactly-one-winner claims and dedup uniqueness
are guaranteed by the store's atomic operations.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID, uuid4

from printqueue.constants import (
    SPAN_CLAIM_JOB,
    SPAN_COMPLETE_JOB,
    SPAN_FAIL_JOB,
    SPAN_SUBMIT_JOB,
    MAX_DEDUP_KEY_LENGTH,
    MAX_TARGET_LENGTH,
    JobStatus,
)
from printqueue.exceptions import (
    DuplicateKeyError,
    JobNotFoundError,
    JobValidationError,
)
from printqueue.observability.metrics import MetricsCollector, get_metrics
from printqueue.observability.tracing import get_tracer
from printqueue.store.base import JobStore
from printqueue.types.job import JobRecord, SubmitResult, TransitionResult

logger = logging.getLogger(__name__)

IdFactory = Callable[[], UUID]


class QueueService:
    """
    Producer and worker facing operations of the print queue.

    Workers follow claim -> process -> complete/fail. A claimed job that is
    never acknowledged stays PROCESSING; failed jobs are never re-queued.
    """

    def __init__(
        self,
        store: JobStore,
        id_factory: IdFactory = uuid4,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the service.

        Args:
            store: Backend holding the job records.
            id_factory: Source of globally unique job identifiers.
            metrics: Metrics collector. Defaults to the process-wide one.
        """
        self._store = store
        self._id_factory = id_factory
        self._metrics = metrics or get_metrics()

    @property
    def store(self) -> JobStore:
        return self._store

    async def submit(
        self,
        payload: str,
        target: str | None = None,
        dedup_key: str | None = None,
    ) -> SubmitResult:
        """
        Queue a print job.

        With a dedup key, submission is idempotent: a repeated key returns the
        job that already holds it and stores nothing new.

        Args:
            payload: Base64-encoded PDF.
            target: Optional printer name.
            dedup_key: Optional caller-supplied key.

        Returns:
            SubmitResult with the job id and whether it was already queued.

        Raises:
            JobValidationError: If payload is missing or empty, or target or
                dedup_key exceed their stored width.
        """
        if not payload or not payload.strip():
            raise JobValidationError("payload is required")

        if dedup_key is not None and not dedup_key.strip():
            dedup_key = None
        if dedup_key is not None and len(dedup_key) > MAX_DEDUP_KEY_LENGTH:
            raise JobValidationError(f"dedup_key exceeds {MAX_DEDUP_KEY_LENGTH} characters")
        if target is not None and len(target) > MAX_TARGET_LENGTH:
            raise JobValidationError(f"target exceeds {MAX_TARGET_LENGTH} characters")

        job = JobRecord(
            id=self._id_factory(),
            dedup_key=dedup_key,
            payload=payload,
            target=target,
            status=JobStatus.PENDING,
            tries=0,
            created_at=datetime.now(UTC),
        )

        with get_tracer().start_as_current_span(SPAN_SUBMIT_JOB) as span:
            span.set_attribute("job_id", str(job.id))
            if dedup_key is not None:
                span.set_attribute("dedup_key", dedup_key)

            try:
                created = await self._store.insert(job)
            except DuplicateKeyError as e:
                logger.info(
                    "Job already queued, ignoring duplicate",
                    extra={"job_id": str(e.existing_id), "dedup_key": dedup_key},
                )
                self._metrics.record_job_submitted(already_queued=True)
                return SubmitResult(id=e.existing_id, dedup_key=dedup_key, already_queued=True)

        logger.info(
            "Job queued",
            extra={"job_id": str(created.id), "dedup_key": dedup_key, "target": target},
        )
        self._metrics.record_job_submitted(already_queued=False)
        return SubmitResult(id=created.id, dedup_key=dedup_key, already_queued=False)

    async def claim(self, job_id: UUID | None = None) -> JobRecord:
        """
        Claim a pending job for processing.

        Args:
            job_id: Specific job to claim; the oldest pending job if omitted.

        Returns:
            The claimed job, now PROCESSING.

        Raises:
            JobNotFoundError: If the job does not exist, is not pending, or
                the queue is empty. Losing a race ends here too.
        """
        with get_tracer().start_as_current_span(SPAN_CLAIM_JOB) as span:
            if job_id is not None:
                span.set_attribute("job_id", str(job_id))
            job = await self._store.claim_next(job_id)

        self._metrics.record_claim(claimed=job is not None)

        if job is None:
            if job_id is None:
                raise JobNotFoundError("No pending job available")
            logger.info("Job not available for claim", extra={"job_id": str(job_id)})
            raise JobNotFoundError("Job not available or already claimed", job_id=job_id)

        logger.info("Job claimed", extra={"job_id": str(job.id), "target": job.target})
        return job

    async def complete(self, job_id: UUID) -> TransitionResult:
        """
        Mark a processing job as done.

        Safe to repeat: on any other state nothing changes and the current
        job is returned with applied=False.

        Raises:
            JobNotFoundError: If no job has this id.
        """
        with get_tracer().start_as_current_span(SPAN_COMPLETE_JOB) as span:
            span.set_attribute("job_id", str(job_id))
            updated = await self._store.mark_done(job_id)
            result = await self._resolve_transition(job_id, updated)

        self._metrics.record_transition(JobStatus.DONE.value, result.applied)
        if result.applied:
            logger.info("Job marked as done", extra={"job_id": str(job_id)})
        else:
            logger.info(
                "Complete ignored, job not processing",
                extra={"job_id": str(job_id), "status": result.job.status.value},
            )
        return result

    async def fail(self, job_id: UUID) -> TransitionResult:
        """
        Mark a processing job as failed, incrementing its tries.

        Safe to repeat: tries only increases when the transition applies.

        Raises:
            JobNotFoundError: If no job has this id.
        """
        with get_tracer().start_as_current_span(SPAN_FAIL_JOB) as span:
            span.set_attribute("job_id", str(job_id))
            updated = await self._store.mark_failed(job_id)
            result = await self._resolve_transition(job_id, updated)

        self._metrics.record_transition(JobStatus.FAILED.value, result.applied)
        if result.applied:
            logger.warning(
                "Job marked as failed",
                extra={"job_id": str(job_id), "tries": result.job.tries},
            )
        else:
            logger.info(
                "Fail ignored, job not processing",
                extra={"job_id": str(job_id), "status": result.job.status.value},
            )
        return result

    async def list_pending(self) -> list[JobRecord]:
        """Pending jobs, oldest first."""
        jobs = await self._store.list_pending()
        self._metrics.update_queue_depth(len(jobs))
        return jobs

    async def get_job(self, job_id: UUID) -> JobRecord:
        """
        Look up any job, including terminal ones.

        Raises:
            JobNotFoundError: If no job has this id.
        """
        job = await self._store.get(job_id)
        if job is None:
            raise JobNotFoundError("Job not found", job_id=job_id)
        return job

    async def stats(self) -> dict[str, int]:
        """Job counts for every status, zero-filled."""
        counts = await self._store.count_by_status()
        stats = {status.value: counts.get(status.value, 0) for status in JobStatus}
        self._metrics.update_queue_depth(stats[JobStatus.PENDING.value])
        return stats

    async def _resolve_transition(
        self,
        job_id: UUID,
        updated: JobRecord | None,
    ) -> TransitionResult:
        if updated is not None:
            return TransitionResult(job=updated, applied=True)

        current = await self._store.get(job_id)
        if current is None:
            raise JobNotFoundError("Job not found", job_id=job_id)
        return TransitionResult(job=current, applied=False)

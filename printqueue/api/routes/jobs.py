"""
Print job routes.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Response, status

from printqueue.api.dependencies import QueueServiceDep
from printqueue.constants import API_V1_PREFIX, JobStatus
from printqueue.types.api import (
    ClaimJobRequest,
    ClaimJobResponse,
    ErrorResponse,
    JobIdRequest,
    JobResponse,
    JobStatsResponse,
    PendingJobResponse,
    SubmitJobRequest,
    SubmitJobResponse,
    TransitionResponse,
)
from printqueue.types.job import JobRecord, TransitionResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/jobs", tags=["Jobs"])

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _job_to_response(job: JobRecord) -> JobResponse:
    """Convert a JobRecord to a JobResponse."""
    return JobResponse(
        id=job.id,
        dedup_key=job.dedup_key,
        payload=job.payload,
        target=job.target,
        status=job.status,
        tries=job.tries,
        created_at=job.created_at,
    )


def _transition_to_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        id=result.job.id,
        status=result.job.status,
        tries=result.job.tries,
        applied=result.applied,
    )


@router.post(
    "",
    response_model=SubmitJobResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a print job",
    description="Queue a PDF. A repeated dedupKey returns the already queued job.",
)
async def submit_job(
    request: SubmitJobRequest,
    response: Response,
    service: QueueServiceDep,
) -> SubmitJobResponse:
    """
    Submit a print job.

    Returns 201 when a job was created and 200 when the dedup key was
    already queued.
    """
    result = await service.submit(
        payload=request.payload,
        target=request.target,
        dedup_key=request.dedup_key,
    )

    if result.already_queued:
        response.status_code = status.HTTP_200_OK

    return SubmitJobResponse(
        id=result.id,
        dedup_key=result.dedup_key,
        already_queued=result.already_queued,
        message="Job already queued" if result.already_queued else "Job queued",
    )


@router.get(
    "/pending",
    response_model=list[PendingJobResponse],
    response_model_by_alias=True,
    summary="List pending jobs",
    description="Pending jobs, oldest first. For visibility only; use claim to take work.",
)
async def list_pending(service: QueueServiceDep) -> list[PendingJobResponse]:
    jobs = await service.list_pending()
    return [
        PendingJobResponse(
            id=job.id,
            payload=job.payload,
            target=job.target,
            dedup_key=job.dedup_key,
            created_at=job.created_at,
        )
        for job in jobs
    ]


@router.post(
    "/claim",
    response_model=ClaimJobResponse,
    response_model_by_alias=True,
    responses=_NOT_FOUND,
    summary="Claim a job",
    description="Atomically move one pending job to processing. 404 means nothing to do.",
)
async def claim_job(
    service: QueueServiceDep,
    request: ClaimJobRequest | None = None,
) -> ClaimJobResponse:
    job_id = request.id if request is not None else None
    job = await service.claim(job_id)
    return ClaimJobResponse(id=job.id, payload=job.payload, target=job.target)


@router.post(
    "/complete",
    response_model=TransitionResponse,
    response_model_by_alias=True,
    responses=_NOT_FOUND,
    summary="Mark a job as done",
)
async def complete_job(
    request: JobIdRequest,
    service: QueueServiceDep,
) -> TransitionResponse:
    result = await service.complete(request.id)
    return _transition_to_response(result)


@router.post(
    "/fail",
    response_model=TransitionResponse,
    response_model_by_alias=True,
    responses=_NOT_FOUND,
    summary="Mark a job as failed",
    description="Moves a processing job to failed and increments its tries. Never re-queues.",
)
async def fail_job(
    request: JobIdRequest,
    service: QueueServiceDep,
) -> TransitionResponse:
    result = await service.fail(request.id)
    return _transition_to_response(result)


@router.get(
    "/stats/summary",
    response_model=JobStatsResponse,
    response_model_by_alias=True,
    summary="Get job statistics",
)
async def get_job_stats(service: QueueServiceDep) -> JobStatsResponse:
    stats = await service.stats()
    return JobStatsResponse(stats=stats, queue_depth=stats[JobStatus.PENDING.value])


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    response_model_by_alias=True,
    responses=_NOT_FOUND,
    summary="Get job details",
)
async def get_job(job_id: UUID, service: QueueServiceDep) -> JobResponse:
    job = await service.get_job(job_id)
    return _job_to_response(job)

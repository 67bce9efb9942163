"""
Type definitions for the print queue.
Contains input/output type definitions for all functions, grouped by module.
"""

from printqueue.types.api import (
    ClaimJobRequest,
    ClaimJobResponse,
    ErrorResponse,
    HealthResponse,
    JobIdRequest,
    JobResponse,
    JobStatsResponse,
    PendingJobResponse,
    SubmitJobRequest,
    SubmitJobResponse,
    TransitionResponse,
)
from printqueue.types.job import (
    JobContext,
    JobRecord,
    JobResult,
    SubmitResult,
    TransitionResult,
)

__all__ = [
    # API types
    "SubmitJobRequest",
    "SubmitJobResponse",
    "PendingJobResponse",
    "JobResponse",
    "ClaimJobRequest",
    "ClaimJobResponse",
    "JobIdRequest",
    "TransitionResponse",
    "JobStatsResponse",
    "HealthResponse",
    "ErrorResponse",
    # Job types
    "JobRecord",
    "SubmitResult",
    "TransitionResult",
    "JobContext",
    "JobResult",
]

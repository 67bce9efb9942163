"""
API request and response type definitions.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from printqueue.constants import MAX_DEDUP_KEY_LENGTH, MAX_TARGET_LENGTH, JobStatus


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitJobRequest(CamelModel):
    """Request body for submitting a print job."""

    payload: str = Field(..., min_length=1, description="Base64-encoded PDF")
    target: str | None = Field(
        default=None,
        max_length=MAX_TARGET_LENGTH,
        description="Printer name or routing hint",
    )
    dedup_key: str | None = Field(
        default=None,
        max_length=MAX_DEDUP_KEY_LENGTH,
        description="Caller-supplied key collapsing repeated submissions",
    )


class SubmitJobResponse(CamelModel):
    """Response body after submitting a job."""

    id: UUID
    dedup_key: str | None
    already_queued: bool
    message: str = "Job queued"


class PendingJobResponse(CamelModel):
    """Pending job as listed for visibility."""

    id: UUID
    payload: str
    target: str | None
    dedup_key: str | None
    created_at: datetime


class JobResponse(CamelModel):
    """Full job details response."""

    id: UUID
    dedup_key: str | None
    payload: str
    target: str | None
    status: JobStatus
    tries: int
    created_at: datetime


class ClaimJobRequest(CamelModel):
    """Request body for claiming a job. Without an id the oldest pending job is claimed."""

    id: UUID | None = None


class ClaimJobResponse(CamelModel):
    """A job now owned by the calling worker."""

    id: UUID
    payload: str
    target: str | None


class JobIdRequest(CamelModel):
    """Request body referencing a single job."""

    id: UUID


class TransitionResponse(CamelModel):
    """Response body after complete/fail."""

    id: UUID
    status: JobStatus
    tries: int
    applied: bool


class JobStatsResponse(CamelModel):
    """Job counts by status."""

    stats: dict[str, int]
    queue_depth: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Any = None

"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from printqueue.constants import JobStatus


@dataclass
class JobRecord:
    """
    Backend-neutral snapshot of a persisted print job.

    Returned by every store implementation so the queue service never
    depends on a particular persistence layer.
    """

    id: UUID
    payload: str
    status: JobStatus
    tries: int
    created_at: datetime
    dedup_key: str | None = None
    target: str | None = None


@dataclass
class SubmitResult:
    """Outcome of a submission."""

    id: UUID
    dedup_key: str | None
    already_queued: bool


@dataclass
class TransitionResult:
    """
    Outcome of complete/fail.

    ``applied`` is False when the job was not in PROCESSING and nothing changed.
    """

    job: JobRecord
    applied: bool


@dataclass
class JobContext:
    """
    Context passed to print handlers during execution.
    """

    job_id: UUID
    payload: str
    target: str | None
    tries: int


class JobResult(BaseModel):
    """
    Result of job execution.
    Returned by print handlers after processing.
    """

    success: bool
    output: dict[str, str] | None = None
    error: str | None = None
    duration_ms: float | None = None

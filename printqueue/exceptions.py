"""
Error taxonomy for the print queue.

Callers distinguish "this request was wrong" (JobValidationError,
JobNotFoundError) from "retry later" (TransientStoreError).
"""

from uuid import UUID


class PrintQueueError(Exception):
    """Base class for all print queue errors."""


class JobValidationError(PrintQueueError):
    """The submission is malformed (e.g. missing payload)."""


class DuplicateKeyError(PrintQueueError):
    """
    A job with the same dedup key already exists.

    Raised by stores on insert; the queue service resolves it into an
    "already queued" result, so it never reaches producers.
    """

    def __init__(self, dedup_key: str, existing_id: UUID):
        super().__init__(f"Dedup key {dedup_key!r} already used by job {existing_id}")
        self.dedup_key = dedup_key
        self.existing_id = existing_id


class JobNotFoundError(PrintQueueError):
    """No such job, or no job eligible for the requested operation."""

    def __init__(self, message: str, job_id: UUID | None = None):
        super().__init__(message)
        self.job_id = job_id


class TransientStoreError(PrintQueueError):
    """The backing store failed; the operation was not applied."""


class FatalInitError(PrintQueueError):
    """The store is unreachable or its schema cannot be created at startup."""

"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Print job lifecycle states.

    State transitions:
    - PENDING -> PROCESSING (claimed by exactly one worker)
    - PROCESSING -> DONE (worker acknowledged success)
    - PROCESSING -> FAILED (worker reported failure, tries += 1)

    DONE and FAILED are terminal. A failed job is never re-queued implicitly.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


# API constants
API_V1_PREFIX = "/v1"
RETRY_AFTER_SECONDS = 1

# Column widths of print_jobs
MAX_DEDUP_KEY_LENGTH = 255
MAX_TARGET_LENGTH = 255

# Error codes returned in structured error payloads
ERROR_VALIDATION = "validation_error"
ERROR_NOT_FOUND = "not_found"
ERROR_STORE_UNAVAILABLE = "store_unavailable"
ERROR_INTERNAL = "internal_error"
ERROR_METHOD_NOT_ALLOWED = "method_not_allowed"
ERROR_HTTP = "http_error"

# Metrics names
METRIC_QUEUE_DEPTH = "print_queue_depth"
METRIC_JOBS_SUBMITTED = "print_jobs_submitted_total"
METRIC_JOBS_CLAIMED = "print_jobs_claimed_total"
METRIC_JOB_TRANSITIONS = "print_job_transitions_total"
METRIC_JOB_DURATION = "print_job_duration_seconds"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_SUBMIT_JOB = "submit_job"
SPAN_CLAIM_JOB = "claim_job"
SPAN_COMPLETE_JOB = "complete_job"
SPAN_FAIL_JOB = "fail_job"
SPAN_EXECUTE_JOB = "execute_job"

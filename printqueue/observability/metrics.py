"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from printqueue.constants import (
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_JOB_DURATION,
    METRIC_JOB_TRANSITIONS,
    METRIC_JOBS_CLAIMED,
    METRIC_JOBS_SUBMITTED,
    METRIC_QUEUE_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the print queue.

    Collects metrics for:
    - Queue depth
    - Submissions (created vs. deduplicated)
    - Claims (won vs. nothing available)
    - complete/fail transitions (applied vs. no-op)
    - Worker processing duration
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of pending print jobs",
            registry=self._registry,
        )

        self.jobs_submitted = Counter(
            METRIC_JOBS_SUBMITTED,
            "Total number of print job submissions",
            ["outcome"],
            registry=self._registry,
        )

        self.jobs_claimed = Counter(
            METRIC_JOBS_CLAIMED,
            "Total number of claim attempts",
            ["outcome"],
            registry=self._registry,
        )

        self.job_transitions = Counter(
            METRIC_JOB_TRANSITIONS,
            "Total number of complete/fail calls",
            ["status", "applied"],
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Worker processing duration in seconds",
            ["status"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

    def record_job_submitted(self, already_queued: bool) -> None:
        """Record a submission."""
        outcome = "duplicate" if already_queued else "created"
        self.jobs_submitted.labels(outcome=outcome).inc()

    def record_claim(self, claimed: bool) -> None:
        """Record a claim attempt."""
        self.jobs_claimed.labels(outcome="claimed" if claimed else "empty").inc()

    def record_transition(self, status: str, applied: bool) -> None:
        """Record a complete/fail call."""
        self.job_transitions.labels(status=status, applied=str(applied).lower()).inc()

    def record_job_processed(self, status: str, duration_seconds: float) -> None:
        """Record how long a worker spent on a job."""
        self.job_duration.labels(status=status).observe(duration_seconds)

    def update_queue_depth(self, depth: int) -> None:
        """Update the pending job gauge."""
        self.queue_depth.set(depth)

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, creating it on first use."""
    if _metrics is None:
        return setup_metrics()
    return _metrics

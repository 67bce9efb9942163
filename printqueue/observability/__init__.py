"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from printqueue.observability.logging import setup_logging
from printqueue.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from printqueue.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
]

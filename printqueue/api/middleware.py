"""
Request metrics middleware.
"""

import time
from collections.abc import Callable

from fastapi import Request

from printqueue.observability.metrics import get_metrics

# Paths excluded from request metrics
_SKIP_PATHS = frozenset({"/metrics", "/docs", "/openapi.json"})

# Endpoint label for requests that matched no route
UNMATCHED_ENDPOINT = "unmatched"


def create_metrics_middleware() -> Callable:
    """
    Create middleware recording request counts and latency.

    Returns:
        The middleware function.
    """

    async def metrics_middleware(request: Request, call_next: Callable):
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)

        # Label by route template, not raw path, to bound cardinality
        route = request.scope.get("route")
        endpoint = getattr(route, "path", UNMATCHED_ENDPOINT)
        get_metrics().record_api_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration_seconds=time.perf_counter() - start,
        )
        return response

    return metrics_middleware

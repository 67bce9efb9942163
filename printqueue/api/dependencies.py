"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from printqueue.service import QueueService


def get_queue_service(request: Request) -> QueueService:
    """Return the queue service created during application startup."""
    service = getattr(request.app.state, "queue_service", None)
    if service is None:
        raise RuntimeError("Queue service not initialized")
    return service


QueueServiceDep = Annotated[QueueService, Depends(get_queue_service)]

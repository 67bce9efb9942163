"""
API routes module.
"""

from printqueue.api.routes.health import router as health_router
from printqueue.api.routes.jobs import router as jobs_router

__all__ = ["jobs_router", "health_router"]

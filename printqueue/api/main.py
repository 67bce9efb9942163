"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from printqueue import __version__
from printqueue.api.errors import register_exception_handlers
from printqueue.api.middleware import create_metrics_middleware
from printqueue.api.routes import health_router, jobs_router
from printqueue.bootstrap import close_store, open_store
from printqueue.config import get_settings
from printqueue.observability.logging import setup_logging
from printqueue.observability.metrics import setup_metrics
from printqueue.observability.tracing import instrument_fastapi, setup_tracing
from printqueue.service import QueueService
from printqueue.store.base import JobStore

logger = logging.getLogger(__name__)


def create_app(store: JobStore | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Job store to serve from. When omitted, the store configured
            in settings is opened at startup; a FatalInitError aborts
            startup before any request is served.

    Returns:
        FastAPI: The configured application instance.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging("api")
        setup_metrics()
        setup_tracing()

        owns_store = store is None
        if owns_store:
            app.state.queue_service = QueueService(await open_store(settings))

        logger.info(
            "Application started",
            extra={"store_backend": type(app.state.queue_service.store).__name__},
        )

        yield

        if owns_store:
            await close_store(settings)
        logger.info("Application shutdown")

    app = FastAPI(
        title="Print Queue API",
        description="Durable print job queue with atomic claims and deduplicated submission",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(BaseHTTPMiddleware, dispatch=create_metrics_middleware())

    register_exception_handlers(app)

    # A supplied store is usable without running the lifespan (e.g. under ASGITransport)
    if store is not None:
        app.state.queue_service = QueueService(store)

    app.include_router(health_router)
    app.include_router(jobs_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

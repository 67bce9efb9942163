"""
Exception handlers mapping the error taxonomy to structured responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from printqueue.constants import (
    ERROR_HTTP,
    ERROR_INTERNAL,
    ERROR_METHOD_NOT_ALLOWED,
    ERROR_NOT_FOUND,
    ERROR_STORE_UNAVAILABLE,
    ERROR_VALIDATION,
    RETRY_AFTER_SECONDS,
)
from printqueue.exceptions import (
    JobNotFoundError,
    JobValidationError,
    TransientStoreError,
)
from printqueue.types.api import ErrorResponse

logger = logging.getLogger(__name__)

# Framework-raised statuses (body parsing, routing) and their error codes
_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: ERROR_VALIDATION,
    status.HTTP_404_NOT_FOUND: ERROR_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ERROR_METHOD_NOT_ALLOWED,
}


def _error(status_code: int, error: str, detail=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, ERROR_VALIDATION, exc.errors())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = _HTTP_ERROR_CODES.get(exc.status_code, ERROR_HTTP)
    return _error(exc.status_code, error, exc.detail, headers=exc.headers)


async def job_validation_handler(request: Request, exc: JobValidationError) -> JSONResponse:
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, ERROR_VALIDATION, str(exc))


async def not_found_handler(request: Request, exc: JobNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, ERROR_NOT_FOUND, str(exc))


async def store_error_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    logger.warning(
        "Request failed on store error",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ERROR_STORE_UNAVAILABLE,
        "Job store unavailable, retry later",
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, ERROR_INTERNAL)


def register_exception_handlers(app: FastAPI) -> None:
    """Install all handlers on the application."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(JobValidationError, job_validation_handler)
    app.add_exception_handler(JobNotFoundError, not_found_handler)
    app.add_exception_handler(TransientStoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

"""
Print handler registry and implementations.

A handler receives a claimed job and reports success or failure. The
worker turns that into complete() or fail(); handlers never touch the
queue themselves.
"""

import asyncio
import base64
import binascii
import logging
import re
from collections.abc import Awaitable, Callable
from pathlib import Path

from printqueue.config import get_settings
from printqueue.types.job import JobContext, JobResult

logger = logging.getLogger(__name__)

# Type alias for print handler functions
PrintHandler = Callable[[JobContext], Awaitable[JobResult]]

# Handler registry
_handlers: dict[str, PrintHandler] = {}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def register_handler(name: str) -> Callable[[PrintHandler], PrintHandler]:
    """
    Decorator to register a print handler.

    Example:
        @register_handler("cups")
        async def handle_cups(context: JobContext) -> JobResult:
            ...
    """
    def decorator(handler: PrintHandler) -> PrintHandler:
        _handlers[name] = handler
        logger.debug(f"Registered print handler: {name}")
        return handler
    return decorator


def get_handler(name: str) -> PrintHandler | None:
    """Get a handler by name, or None if not registered."""
    return _handlers.get(name)


def list_handlers() -> list[str]:
    """List all registered handler names."""
    return list(_handlers.keys())


def decode_pdf(payload: str) -> bytes:
    """
    Decode a base64 payload, accepting an optional data-URI prefix.

    Raises:
        ValueError: If the payload is not valid base64.
    """
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"payload is not valid base64: {e}") from e


def spool_path(spool_dir: str | Path, context: JobContext) -> Path:
    """Path a job is written to: <spool_dir>/<target or 'default'>/<job_id>.pdf"""
    folder = _UNSAFE_CHARS.sub("_", context.target) if context.target else "default"
    return Path(spool_dir) / folder / f"{context.job_id}.pdf"


# ============================================================================
# Built-in print handlers
# ============================================================================


@register_handler("spool")
async def handle_spool(context: JobContext) -> JobResult:
    """
    Write the decoded PDF into the spool directory.

    A printer agent watching the per-target folder picks files up from there.
    """
    try:
        pdf = decode_pdf(context.payload)
    except ValueError as e:
        return JobResult(success=False, error=str(e))

    path = spool_path(get_settings().worker_spool_dir, context)

    def _write() -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".part")
        tmp.write_bytes(pdf)
        tmp.replace(path)

    try:
        await asyncio.to_thread(_write)
    except OSError as e:
        return JobResult(success=False, error=f"spool write failed: {e}")

    logger.info(
        "Job spooled",
        extra={"job_id": str(context.job_id), "path": str(path), "bytes": len(pdf)},
    )
    return JobResult(success=True, output={"path": str(path)})


@register_handler("discard")
async def handle_discard(context: JobContext) -> JobResult:
    """
    Decode and drop the document. Useful for smoke tests of the pipeline.
    """
    try:
        pdf = decode_pdf(context.payload)
    except ValueError as e:
        return JobResult(success=False, error=str(e))
    return JobResult(success=True, output={"bytes": str(len(pdf))})


@register_handler("failing")
async def handle_failing(context: JobContext) -> JobResult:
    """
    Handler that always fails - for exercising the failure path.
    """
    return JobResult(
        success=False,
        error=f"Intentional failure for job {context.job_id}",
    )


async def execute_job(context: JobContext, handler_name: str) -> JobResult:
    """
    Run a job through the named handler.

    Handler exceptions are converted into a failed JobResult.
    """
    handler = get_handler(handler_name)

    if handler is None:
        logger.error(
            f"No print handler named: {handler_name}",
            extra={"job_id": str(context.job_id)},
        )
        return JobResult(
            success=False,
            error=f"No print handler registered: {handler_name}",
        )

    try:
        return await handler(context)
    except Exception as e:
        logger.exception(
            "Print handler raised exception",
            extra={"job_id": str(context.job_id), "error": str(e)},
        )
        return JobResult(
            success=False,
            error=f"Handler exception: {str(e)}",
        )

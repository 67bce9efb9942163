"""
Worker process for printing jobs.

The worker follows the queue protocol: claim one job, process it, then
acknowledge with complete or fail. An empty queue is polled again after
a fixed interval.
"""

import asyncio
import logging
import signal
import time

from printqueue.bootstrap import close_store, open_store
from printqueue.config import get_settings
from printqueue.constants import SPAN_EXECUTE_JOB
from printqueue.exceptions import JobNotFoundError, TransientStoreError
from printqueue.observability.logging import bind_context, setup_logging
from printqueue.observability.metrics import get_metrics
from printqueue.observability.tracing import get_tracer, setup_tracing
from printqueue.service import QueueService
from printqueue.types.job import JobContext, JobRecord
from printqueue.worker.handlers import execute_job

logger = logging.getLogger(__name__)


class Worker:
    """
    Print worker that polls for and executes jobs one at a time.

    Features:
    - Atomic claims through the queue service
    - Pluggable print handler
    - Graceful shutdown on SIGTERM/SIGINT (the current job is finished first)
    """

    def __init__(
        self,
        service: QueueService,
        worker_id: str | None = None,
        handler_name: str | None = None,
        poll_interval: float | None = None,
    ):
        """
        Initialize the worker.

        Args:
            service: Queue service to claim from and report to.
            worker_id: Worker identifier used in logs.
            handler_name: Registered print handler to run jobs through.
            poll_interval: Seconds between polls when the queue is empty.
        """
        settings = get_settings()

        self.service = service
        self.worker_id = worker_id or settings.worker_id
        self.handler_name = handler_name or settings.worker_handler
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.worker_poll_interval_seconds
        )

        self._running = False
        self._metrics = get_metrics()

    async def start(self) -> None:
        """Run the polling loop until stop() is called."""
        bind_context(worker_id=self.worker_id)
        logger.info(
            "Worker starting",
            extra={"worker_id": self.worker_id, "handler": self.handler_name},
        )

        self._running = True

        while self._running:
            try:
                processed = await self.run_once()
                if not processed:
                    await asyncio.sleep(self.poll_interval)

            except TransientStoreError as e:
                logger.warning(f"Job store unavailable, backing off: {e}")
                await asyncio.sleep(self.poll_interval)

            except Exception as e:
                logger.exception(f"Error in worker loop: {e}")
                await asyncio.sleep(self.poll_interval)

        logger.info("Worker stopped", extra={"worker_id": self.worker_id})

    async def stop(self) -> None:
        """Stop the worker after the current job."""
        logger.info("Worker stopping", extra={"worker_id": self.worker_id})
        self._running = False

    async def run_once(self) -> bool:
        """
        Claim and process at most one job.

        Returns:
            True if a job was claimed, False if the queue was empty.
        """
        try:
            job = await self.service.claim()
        except JobNotFoundError:
            return False

        await self._execute_job(job)
        return True

    async def _execute_job(self, job: JobRecord) -> None:
        """
        Run the handler and acknowledge the outcome.

        Acknowledgement errors propagate to the loop; the job then stays
        processing, matching what a crashed worker leaves behind.
        """
        start_time = time.time()
        context = JobContext(
            job_id=job.id,
            payload=job.payload,
            target=job.target,
            tries=job.tries,
        )

        logger.info(
            "Executing job",
            extra={"job_id": str(job.id), "target": job.target},
        )

        with get_tracer().start_as_current_span(SPAN_EXECUTE_JOB) as span:
            span.set_attribute("job_id", str(job.id))
            span.set_attribute("handler", self.handler_name)
            result = await execute_job(context, self.handler_name)

        duration = time.time() - start_time

        if result.success:
            await self.service.complete(job.id)
            logger.info(
                "Job printed successfully",
                extra={"job_id": str(job.id), "duration": f"{duration:.2f}s"},
            )
            self._metrics.record_job_processed("done", duration)
        else:
            outcome = await self.service.fail(job.id)
            logger.warning(
                "Job failed",
                extra={
                    "job_id": str(job.id),
                    "error": result.error,
                    "tries": outcome.job.tries,
                },
            )
            self._metrics.record_job_processed("failed", duration)


async def run_async() -> None:
    """Run the worker asynchronously."""
    settings = get_settings()
    setup_logging("worker")
    setup_tracing()

    store = await open_store(settings)
    worker = Worker(QueueService(store))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(worker.stop())
        )

    try:
        await worker.start()
    finally:
        await close_store(settings)


def run() -> None:
    """Run the worker."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()

"""
Unit tests for the queue service, run against the in-memory store.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from uuid import UUID, uuid4

import pytest

from printqueue.constants import JobStatus
from printqueue.exceptions import JobNotFoundError, JobValidationError
from printqueue.observability.metrics import MetricsCollector
from printqueue.service import QueueService
from printqueue.store.memory import InMemoryJobStore


def sample_value(metrics: MetricsCollector, name: str, labels: dict[str, str]) -> float:
    value = metrics._registry.get_sample_value(name, labels)
    return value or 0.0


class TestSubmit:
    """Tests for QueueService.submit."""

    async def test_submit_without_key_creates_distinct_jobs(self, service: QueueService):
        """Every keyless submission is a new job and grows the queue by one."""
        ids = set()
        for i in range(5):
            before = len(await service.list_pending())
            result = await service.submit(payload=f"doc-{i}")
            after = len(await service.list_pending())

            assert result.already_queued is False
            assert after == before + 1
            ids.add(result.id)

        assert len(ids) == 5

    async def test_submit_same_key_returns_first_job(self, service: QueueService):
        """Only the first submission of a key stores anything."""
        first = await service.submit(payload="A", dedup_key="X")
        second = await service.submit(payload="B", dedup_key="X")

        assert first.already_queued is False
        assert second.already_queued is True
        assert second.id == first.id
        assert second.dedup_key == "X"

        pending = await service.list_pending()
        assert len(pending) == 1
        assert pending[0].payload == "A"

    async def test_submit_key_still_blocked_after_completion(self, service: QueueService):
        """A finished job keeps its key; resubmitting it does not create a new job."""
        first = await service.submit(payload="A", dedup_key="order-9")
        await service.claim(first.id)
        await service.complete(first.id)

        again = await service.submit(payload="A", dedup_key="order-9")

        assert again.already_queued is True
        assert again.id == first.id
        assert await service.list_pending() == []

    async def test_submit_concurrent_same_key(self, service: QueueService):
        """Concurrent submissions of one key all resolve to the same job."""
        results = await asyncio.gather(
            *(service.submit(payload=f"copy-{i}", dedup_key="race") for i in range(20))
        )

        assert len({r.id for r in results}) == 1
        assert sum(not r.already_queued for r in results) == 1
        assert len(await service.list_pending()) == 1

    @pytest.mark.parametrize("payload", ["", "   "])
    async def test_submit_rejects_empty_payload(
        self,
        service: QueueService,
        memory_store: InMemoryJobStore,
        payload: str,
    ):
        """Missing payload is rejected before the store is touched."""
        with pytest.raises(JobValidationError):
            await service.submit(payload=payload, dedup_key="never-stored")

        assert await memory_store.find_by_key("never-stored") is None

    async def test_blank_dedup_key_is_ignored(self, service: QueueService):
        """A blank key behaves like no key."""
        a = await service.submit(payload="A", dedup_key="")
        b = await service.submit(payload="B", dedup_key="")

        assert a.id != b.id
        assert a.dedup_key is None

    @pytest.mark.parametrize(
        "fields",
        [{"dedup_key": "k" * 256}, {"target": "t" * 256}],
    )
    async def test_submit_rejects_oversized_fields(
        self,
        service: QueueService,
        memory_store: InMemoryJobStore,
        fields: dict[str, str],
    ):
        """Fields wider than their column fail validation on every backend."""
        with pytest.raises(JobValidationError):
            await service.submit(payload="A", **fields)

        assert await memory_store.list_pending() == []

    async def test_submit_uses_id_factory(self, memory_store: InMemoryJobStore, metrics: MetricsCollector):
        """Identifiers come from the injected generator."""
        fixed = UUID("00000000-0000-4000-8000-000000000001")
        service = QueueService(memory_store, id_factory=lambda: fixed, metrics=metrics)

        result = await service.submit(payload="A", target="label-printer")

        assert result.id == fixed
        job = await service.get_job(fixed)
        assert job.target == "label-printer"

    async def test_submit_records_metrics(self, service: QueueService, metrics: MetricsCollector):
        """Created and duplicate submissions are counted separately."""
        await service.submit(payload="A", dedup_key="m")
        await service.submit(payload="A", dedup_key="m")

        assert sample_value(metrics, "print_jobs_submitted_total", {"outcome": "created"}) == 1
        assert sample_value(metrics, "print_jobs_submitted_total", {"outcome": "duplicate"}) == 1


class TestClaim:
    """Tests for QueueService.claim."""

    async def test_claim_then_empty(self, service: QueueService):
        """submit -> claim returns the job; a second claim finds nothing."""
        submitted = await service.submit(payload="A")

        claimed = await service.claim()

        assert claimed.id == submitted.id
        assert claimed.status == JobStatus.PROCESSING
        with pytest.raises(JobNotFoundError):
            await service.claim()

    async def test_claim_is_fifo(self, service: QueueService):
        """Claims hand out jobs in submission order."""
        ids = [(await service.submit(payload=str(i))).id for i in range(3)]

        claimed = [(await service.claim()).id for _ in range(3)]

        assert claimed == ids

    async def test_claim_unknown_id(self, service: QueueService):
        """Claiming a job that does not exist is NotFound."""
        job_id = uuid4()
        with pytest.raises(JobNotFoundError) as exc_info:
            await service.claim(job_id)
        assert exc_info.value.job_id == job_id

    async def test_concurrent_claims_single_winner(self, service: QueueService):
        """N concurrent claims on one pending job: one winner, N-1 NotFound."""
        submitted = await service.submit(payload="A")

        results = await asyncio.gather(
            *(service.claim(submitted.id) for _ in range(25)),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, JobNotFoundError)]
        assert len(winners) == 1
        assert len(losers) == 24
        assert winners[0].id == submitted.id

    def test_concurrent_claims_from_threads(self, service: QueueService):
        """Workers in separate threads never receive the same job."""
        for i in range(10):
            asyncio.run(service.submit(payload=str(i)))

        def _claim(_: int):
            try:
                return asyncio.run(service.claim()).id
            except JobNotFoundError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(_claim, range(40)))

        claimed = [r for r in results if r is not None]
        assert len(claimed) == 10
        assert len(set(claimed)) == 10

    async def test_claim_records_metrics(self, service: QueueService, metrics: MetricsCollector):
        """Won and empty claims are counted."""
        await service.submit(payload="A")
        await service.claim()
        with pytest.raises(JobNotFoundError):
            await service.claim()

        assert sample_value(metrics, "print_jobs_claimed_total", {"outcome": "claimed"}) == 1
        assert sample_value(metrics, "print_jobs_claimed_total", {"outcome": "empty"}) == 1


class TestTransitions:
    """Tests for complete/fail."""

    async def test_complete_is_idempotent(self, service: QueueService):
        """A second complete changes nothing."""
        job_id = (await service.submit(payload="A")).id
        await service.claim(job_id)

        first = await service.complete(job_id)
        second = await service.complete(job_id)

        assert first.applied is True
        assert first.job.status == JobStatus.DONE
        assert second.applied is False
        assert second.job.status == JobStatus.DONE
        assert second.job.tries == 0

    async def test_fail_then_complete_is_noop(self, service: QueueService):
        """submit -> claim -> fail -> complete leaves the job failed with one try."""
        job_id = (await service.submit(payload="A")).id
        await service.claim(job_id)

        failed = await service.fail(job_id)
        completed = await service.complete(job_id)

        assert failed.applied is True
        assert failed.job.status == JobStatus.FAILED
        assert failed.job.tries == 1
        assert completed.applied is False
        job = await service.get_job(job_id)
        assert job.status == JobStatus.FAILED
        assert job.tries == 1

    async def test_fail_is_idempotent(self, service: QueueService):
        """Repeated fail calls increment tries only once."""
        job_id = (await service.submit(payload="A")).id
        await service.claim(job_id)

        await service.fail(job_id)
        second = await service.fail(job_id)

        assert second.applied is False
        assert second.job.tries == 1

    async def test_concurrent_fail_increments_once(self, service: QueueService):
        """Racing fail calls on one processing job add exactly one try."""
        job_id = (await service.submit(payload="A")).id
        await service.claim(job_id)

        results = await asyncio.gather(*(service.fail(job_id) for _ in range(10)))

        assert sum(r.applied for r in results) == 1
        assert (await service.get_job(job_id)).tries == 1

    async def test_failed_job_is_not_requeued(self, service: QueueService):
        """A failed job is not claimable again."""
        job_id = (await service.submit(payload="A")).id
        await service.claim()
        await service.fail(job_id)

        with pytest.raises(JobNotFoundError):
            await service.claim()
        with pytest.raises(JobNotFoundError):
            await service.claim(job_id)
        assert (await service.get_job(job_id)).status == JobStatus.FAILED

    async def test_transitions_on_pending_job_are_noops(self, service: QueueService):
        """complete/fail never skip the processing state."""
        job_id = (await service.submit(payload="A")).id

        done = await service.complete(job_id)
        failed = await service.fail(job_id)

        assert done.applied is False
        assert failed.applied is False
        job = await service.get_job(job_id)
        assert job.status == JobStatus.PENDING
        assert job.tries == 0

    @pytest.mark.parametrize("operation", ["complete", "fail"])
    async def test_transition_unknown_job(self, service: QueueService, operation: str):
        """complete/fail on a missing id is NotFound."""
        with pytest.raises(JobNotFoundError):
            await getattr(service, operation)(uuid4())


class TestQueries:
    """Tests for list_pending, get_job and stats."""

    async def test_get_job_terminal_is_queryable(self, service: QueueService):
        """Terminal jobs stay visible for audit."""
        job_id = (await service.submit(payload="A", dedup_key="k")).id
        await service.claim()
        await service.complete(job_id)

        job = await service.get_job(job_id)

        assert job.status == JobStatus.DONE
        assert job.dedup_key == "k"

    async def test_get_job_missing(self, service: QueueService):
        with pytest.raises(JobNotFoundError):
            await service.get_job(uuid4())

    async def test_stats_zero_filled(self, service: QueueService, metrics: MetricsCollector):
        """Stats list every status and update the queue depth gauge."""
        await service.submit(payload="A")
        await service.submit(payload="B")
        await service.claim()

        stats = await service.stats()

        assert stats == {"pending": 1, "processing": 1, "done": 0, "failed": 0}
        assert sample_value(metrics, "print_queue_depth", {}) == 1

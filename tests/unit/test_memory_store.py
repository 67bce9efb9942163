"""
Unit tests for the in-memory job store.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from printqueue.constants import JobStatus
from printqueue.exceptions import DuplicateKeyError
from printqueue.store.memory import InMemoryJobStore
from printqueue.types.job import JobRecord


def make_job(payload: str = "JVBERi0=", dedup_key: str | None = None, target: str | None = None) -> JobRecord:
    return JobRecord(
        id=uuid4(),
        dedup_key=dedup_key,
        payload=payload,
        target=target,
        status=JobStatus.PENDING,
        tries=0,
        created_at=datetime.now(UTC),
    )


class TestInMemoryJobStore:
    """Tests for InMemoryJobStore."""

    async def test_insert_sets_initial_state(self, memory_store: InMemoryJobStore):
        """Inserted jobs start pending with zero tries, whatever the caller passed."""
        job = make_job(target="front-desk")
        job.status = JobStatus.DONE
        job.tries = 7

        stored = await memory_store.insert(job)

        assert stored.id == job.id
        assert stored.status == JobStatus.PENDING
        assert stored.tries == 0
        assert stored.target == "front-desk"

    async def test_insert_duplicate_key_carries_existing_id(self, memory_store: InMemoryJobStore):
        """A second insert with the same key is rejected and names the survivor."""
        first = await memory_store.insert(make_job(payload="A", dedup_key="order-1"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            await memory_store.insert(make_job(payload="B", dedup_key="order-1"))

        assert exc_info.value.existing_id == first.id
        assert len(await memory_store.list_pending()) == 1
        survivor = await memory_store.find_by_key("order-1")
        assert survivor.payload == "A"

    async def test_jobs_without_key_never_collide(self, memory_store: InMemoryJobStore):
        """NULL keys are not subject to the uniqueness constraint."""
        await memory_store.insert(make_job())
        await memory_store.insert(make_job())

        assert len(await memory_store.list_pending()) == 2

    async def test_returned_records_are_copies(self, memory_store: InMemoryJobStore):
        """Mutating a returned record does not change stored state."""
        stored = await memory_store.insert(make_job())
        stored.status = JobStatus.DONE

        fetched = await memory_store.get(stored.id)
        assert fetched.status == JobStatus.PENDING

    async def test_list_pending_is_fifo(self, memory_store: InMemoryJobStore):
        """Pending jobs come back oldest first."""
        ids = [(await memory_store.insert(make_job())).id for _ in range(5)]

        pending = await memory_store.list_pending()

        assert [j.id for j in pending] == ids

    async def test_claim_next_takes_oldest(self, memory_store: InMemoryJobStore):
        """Claiming without an id picks the oldest pending job."""
        first = await memory_store.insert(make_job())
        await memory_store.insert(make_job())

        claimed = await memory_store.claim_next()

        assert claimed.id == first.id
        assert claimed.status == JobStatus.PROCESSING

    async def test_claim_next_by_id_requires_pending(self, memory_store: InMemoryJobStore):
        """A specific id can only be claimed once."""
        job = await memory_store.insert(make_job())

        assert (await memory_store.claim_next(job.id)) is not None
        assert (await memory_store.claim_next(job.id)) is None

    async def test_claim_next_unknown_id(self, memory_store: InMemoryJobStore):
        """Claiming a missing id returns nothing."""
        assert await memory_store.claim_next(uuid4()) is None

    async def test_claim_next_empty(self, memory_store: InMemoryJobStore):
        """An empty queue returns nothing rather than waiting."""
        assert await memory_store.claim_next() is None

    async def test_mark_done_only_from_processing(self, memory_store: InMemoryJobStore):
        """Done is applied once and only to processing jobs."""
        job = await memory_store.insert(make_job())

        assert await memory_store.mark_done(job.id) is None  # still pending

        await memory_store.claim_next(job.id)
        done = await memory_store.mark_done(job.id)

        assert done.status == JobStatus.DONE
        assert await memory_store.mark_done(job.id) is None

    async def test_mark_failed_increments_tries_once(self, memory_store: InMemoryJobStore):
        """Fail flips status and increments tries in the same step."""
        job = await memory_store.insert(make_job())
        await memory_store.claim_next(job.id)

        failed = await memory_store.mark_failed(job.id)
        again = await memory_store.mark_failed(job.id)

        assert failed.status == JobStatus.FAILED
        assert failed.tries == 1
        assert again is None
        assert (await memory_store.get(job.id)).tries == 1

    async def test_count_by_status(self, memory_store: InMemoryJobStore):
        """Counts reflect every status present."""
        a = await memory_store.insert(make_job())
        await memory_store.insert(make_job())
        await memory_store.claim_next(a.id)

        counts = await memory_store.count_by_status()

        assert counts == {"pending": 1, "processing": 1}

    def test_concurrent_inserts_same_key_from_threads(self, memory_store: InMemoryJobStore):
        """Racing inserts of one key from many threads leave exactly one row."""

        def _insert(i: int) -> bool:
            try:
                asyncio.run(memory_store.insert(make_job(payload=str(i), dedup_key="shared")))
                return True
            except DuplicateKeyError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(_insert, range(32)))

        assert outcomes.count(True) == 1
        assert len(asyncio.run(memory_store.list_pending())) == 1

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING

import pytest

from parcelscope.domain.batch import (
    QUEUE_EMPTY_MESSAGE,
    BatchLimits,
    BatchResult,
    BatchWorkerPool,
    PropertyJobHandler,
    SkipTraceJobHandler,
)
from parcelscope.domain.model import EnrichmentJob, JobFilter, JobStatus
from parcelscope.domain.registry import AdapterRegistry
from parcelscope.domain.resolution import ResolutionOrchestrator
from tests.helpers.jobs import OTHER_TENANT_ID, TENANT_ID, FakeEnrichmentStore, make_jobs
from tests.helpers.lookups import FakePersonAdapter, FakePropertyAdapter, make_person, make_result

if TYPE_CHECKING:
    from parcelscope.domain.batch import JobHandler, JobPayload

SCOPE = JobFilter(tenant_id=TENANT_ID)


def _pool(store: FakeEnrichmentStore, handler: JobHandler) -> BatchWorkerPool:
    return BatchWorkerPool(unit_of_work_factory=store.unit_of_work, handler=handler)


class ConcurrencyTracker:
    """Handler that tracks how many jobs run at once and fails chosen addresses."""

    def __init__(self, failing: set[str] | None = None, delay: float = 0.05) -> None:
        self.failing = failing or set()
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.seen: list[str] = []

    async def __call__(self, job: EnrichmentJob) -> JobPayload:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            assert job.address is not None
            self.seen.append(job.address)
            if job.address in self.failing:
                raise RuntimeError(f"provider rejected {job.address}")
            return {"source": "fake", "confidence_score": 75}
        finally:
            self.active -= 1


def test_failures_are_isolated_per_job() -> None:
    jobs = make_jobs(12)
    failing = {jobs[3].address or "", jobs[8].address or ""}
    store = FakeEnrichmentStore().seed(jobs)
    handler = ConcurrencyTracker(failing)

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=6, take=100))

    assert result == BatchResult(processed=12)
    assert store.statuses().count(JobStatus.DONE) == 10
    assert store.statuses().count(JobStatus.ERROR) == 2
    assert jobs[3].error == {
        "type": "RuntimeError",
        "message": f"provider rejected {jobs[3].address}",
    }
    assert jobs[0].result == {"source": "fake", "confidence_score": 75}


def test_each_job_is_processed_exactly_once() -> None:
    jobs = make_jobs(12)
    store = FakeEnrichmentStore().seed(jobs)
    handler = ConcurrencyTracker()

    asyncio.run(_pool(store, handler).run(SCOPE, concurrency=6))

    assert sorted(handler.seen) == sorted(job.address or "" for job in jobs)


def test_worker_count_never_exceeds_concurrency() -> None:
    store = FakeEnrichmentStore().seed(make_jobs(12))
    handler = ConcurrencyTracker()

    asyncio.run(_pool(store, handler).run(SCOPE, concurrency=3))

    assert handler.peak == 3


def test_concurrency_and_take_are_clamped() -> None:
    store = FakeEnrichmentStore().seed(make_jobs(30))
    handler = ConcurrencyTracker()

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=50, take=0))

    assert result.processed == 1
    assert handler.peak == 1

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=50, take=1000))

    assert result.processed == 29
    assert handler.peak == 10


def test_take_limits_the_slice_in_insertion_order() -> None:
    jobs = make_jobs(5)
    store = FakeEnrichmentStore().seed(list(reversed(jobs)))
    handler = ConcurrencyTracker()

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=1, take=2))

    assert result.processed == 2
    assert handler.seen == [jobs[0].address, jobs[1].address]
    assert jobs[2].status is JobStatus.QUEUED


def test_empty_queue() -> None:
    store = FakeEnrichmentStore().seed(make_jobs(3, tenant_id=OTHER_TENANT_ID))

    result = asyncio.run(_pool(store, ConcurrencyTracker()).run(SCOPE))

    assert result.to_response() == {
        "success": True,
        "processed": 0,
        "message": QUEUE_EMPTY_MESSAGE,
    }


def test_fetch_failure_is_the_only_pool_level_failure() -> None:
    store = FakeEnrichmentStore().seed(make_jobs(3))
    store.jobs.fail_listing = True

    result = asyncio.run(_pool(store, ConcurrencyTracker()).run(SCOPE))

    assert result.to_response() == {
        "success": False,
        "processed": 0,
        "message": "queue store unavailable",
    }
    assert set(store.statuses()) == {JobStatus.QUEUED}


def test_slow_job_times_out_without_blocking_others() -> None:
    jobs = make_jobs(3)
    store = FakeEnrichmentStore().seed(jobs)
    slow_address = jobs[1].address

    async def handler(job: EnrichmentJob) -> JobPayload:
        if job.address == slow_address:
            await asyncio.sleep(5)
        return {"ok": True}

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=3, timeout_seconds=0.05))

    assert result.processed == 3
    assert jobs[1].status is JobStatus.ERROR
    assert jobs[1].error is not None
    assert jobs[1].error["type"] == "TimeoutError"
    assert jobs[0].status is JobStatus.DONE


def test_every_processed_job_gets_a_usage_log() -> None:
    jobs = make_jobs(4)
    store = FakeEnrichmentStore().seed(jobs)
    handler = ConcurrencyTracker(failing={jobs[0].address or ""})

    asyncio.run(_pool(store, handler).run(SCOPE, concurrency=2))

    assert len(store.logs.logs) == 4
    failed_log = store.logs.list_for_job(jobs[0].id)[0]
    assert failed_log.success is False
    assert failed_log.provider == "property"
    assert failed_log.error_message == f"provider rejected {jobs[0].address}"
    ok_log = store.logs.list_for_job(jobs[1].id)[0]
    assert ok_log.success is True
    assert ok_log.provider == "fake"
    assert ok_log.confidence == 75


def test_job_no_longer_queued_is_skipped() -> None:
    jobs = make_jobs(2)
    store = FakeEnrichmentStore().seed(jobs)
    seen: list[EnrichmentJob] = []

    async def handler(job: EnrichmentJob) -> JobPayload:
        seen.append(job)
        # a concurrent invocation claims the next job after this run fetched it
        jobs[1].start()
        return {"ok": True}

    result = asyncio.run(_pool(store, handler).run(SCOPE, concurrency=1))

    assert result.processed == 1
    assert seen == [jobs[0]]
    assert jobs[1].status is JobStatus.RUNNING
    assert len(store.logs.logs) == 1


def test_store_work_runs_off_the_event_loop_thread() -> None:
    store = FakeEnrichmentStore().seed(make_jobs(4))

    result = asyncio.run(_pool(store, ConcurrencyTracker()).run(SCOPE, concurrency=2))

    assert result.processed == 4
    assert store.threads
    assert threading.get_ident() not in store.threads


def test_batch_limits() -> None:
    limits = BatchLimits()

    assert limits.clamp_concurrency(None) == 4
    assert limits.clamp_concurrency(0) == 1
    assert limits.clamp_concurrency(11) == 10
    assert limits.clamp_take(None) == 100
    assert limits.clamp_take(501) == 500
    assert limits.clamp_timeout(None) == 30.0
    assert limits.clamp_timeout(-1) == 30.0
    assert limits.clamp_timeout(1000) == 300.0


def test_property_handler_resolves_job_address() -> None:
    county = FakePropertyAdapter(
        "county",
        make_result("county", 75, owner_name="JANE DOE", owner_mailing_address="PO BOX 1"),
    )
    orchestrator = ResolutionOrchestrator(registry=AdapterRegistry([("St. Lucie County", county)]))
    job = make_jobs(1)[0]

    payload = asyncio.run(PropertyJobHandler(orchestrator, lookup_timeout_seconds=2.0)(job))

    assert payload["owner_name"] == "JANE DOE"
    assert payload["source"] == "county"
    assert county.calls[0].timeout_seconds == 2.0
    assert county.calls[0].normalized_address == "100 SAMPLE DR"


def test_property_handler_rejects_jobs_without_location() -> None:
    orchestrator = ResolutionOrchestrator(registry=AdapterRegistry())
    job = EnrichmentJob(tenant_id=TENANT_ID)

    with pytest.raises(ValueError, match="neither an address nor coordinates"):
        asyncio.run(PropertyJobHandler(orchestrator)(job))


def test_property_handler_accepts_coordinates_without_address() -> None:
    county = FakePropertyAdapter("county", make_result("county", 75, owner_name="JANE DOE"))
    orchestrator = ResolutionOrchestrator(registry=AdapterRegistry([("St. Lucie County", county)]))
    job = EnrichmentJob(
        tenant_id=TENANT_ID, jurisdiction="St. Lucie County", lat=27.19, lng=-80.25
    )

    payload = asyncio.run(PropertyJobHandler(orchestrator)(job))

    assert payload["source"] == "county"
    assert county.calls[0].has_coordinates


def test_skip_trace_handler() -> None:
    job = make_jobs(1)[0]

    found = asyncio.run(SkipTraceJobHandler(FakePersonAdapter(make_person()))(job))
    missing = asyncio.run(SkipTraceJobHandler(FakePersonAdapter(None))(job))

    assert found["found"] is True
    assert found["first_name"] == "Jane"
    assert missing == {"found": False}

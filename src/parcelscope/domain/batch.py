"""Bounded-concurrency driver for the enrichment job queue.

One ``run`` fetches a slice of queued jobs and lets ``concurrency`` workers pull
from a single shared cursor over that slice, so no job is claimed twice within
the invocation. Nothing guards against two *concurrent* invocations over the
same scope: callers are expected to run one batch per scope at a time.

Unit-of-work calls are blocking, so they run in worker threads, one at a time
per invocation, keeping the event loop free for the lookups in flight.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from parcelscope.domain.model import EnrichmentLog, LookupInput, PersonLookupInput
from parcelscope.domain.model.lookup import DEFAULT_LOOKUP_TIMEOUT_SECONDS
from parcelscope.domain.ports.jobs import JobQueueError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from uuid import UUID

    from parcelscope.domain.model import EnrichmentJob, JobFilter
    from parcelscope.domain.ports.lookup import PersonLookupAdapter
    from parcelscope.domain.ports.unit_of_work import EnrichmentUnitOfWork
    from parcelscope.domain.resolution import ResolutionOrchestrator

log = getLogger(__name__)

QUEUE_EMPTY_MESSAGE: Final[str] = "queue empty"

type JobPayload = dict[str, object]
type JobHandler = Callable[[EnrichmentJob], Awaitable[JobPayload]]
type UnitOfWorkFactory = Callable[[], EnrichmentUnitOfWork]


@dataclass(frozen=True, slots=True)
class BatchLimits:
    min_concurrency: int = 1
    max_concurrency: int = 10
    default_concurrency: int = 4
    min_take: int = 1
    max_take: int = 500
    default_take: int = 100
    default_timeout_seconds: float = 30.0
    max_timeout_seconds: float = 300.0

    def clamp_concurrency(self, value: int | None) -> int:
        if value is None:
            value = self.default_concurrency
        return max(self.min_concurrency, min(self.max_concurrency, value))

    def clamp_take(self, value: int | None) -> int:
        if value is None:
            value = self.default_take
        return max(self.min_take, min(self.max_take, value))

    def clamp_timeout(self, value: float | None) -> float:
        if value is None or value <= 0:
            return self.default_timeout_seconds
        return min(self.max_timeout_seconds, value)


@dataclass(frozen=True, slots=True)
class BatchResult:
    processed: int
    success: bool = True
    message: str | None = None

    def to_response(self) -> dict[str, object]:
        response: dict[str, object] = {"success": self.success, "processed": self.processed}
        if self.message is not None:
            response["message"] = self.message
        return response


@dataclass(frozen=True, slots=True)
class _JobOutcome:
    payload: JobPayload | None
    error: JobPayload | None
    duration_ms: int


class BatchWorkerPool:
    """Drive a job handler over queued jobs with bounded parallelism."""

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        handler: JobHandler,
        limits: BatchLimits | None = None,
        provider: str = "property",
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._handler = handler
        self._limits = limits or BatchLimits()
        self._provider = provider

    async def run(
        self,
        job_filter: JobFilter,
        *,
        concurrency: int | None = None,
        take: int | None = None,
        timeout_seconds: float | None = None,
    ) -> BatchResult:
        workers = self._limits.clamp_concurrency(concurrency)
        limit = self._limits.clamp_take(take)
        per_job_timeout = self._limits.clamp_timeout(timeout_seconds)

        try:
            jobs = await asyncio.to_thread(self._fetch, job_filter, limit)
        except JobQueueError as exc:
            log.error("Could not fetch queued jobs for %s: %s", job_filter, exc)
            return BatchResult(processed=0, success=False, message=str(exc))

        if not jobs:
            log.info("No queued jobs for %s", job_filter)
            return BatchResult(processed=0, message=QUEUE_EMPTY_MESSAGE)

        log.info(
            "Processing %s queued jobs with %s workers (timeout %ss per job)",
            len(jobs),
            workers,
            per_job_timeout,
        )
        cursor = iter(jobs)
        store_lock = asyncio.Lock()
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(self._worker(cursor, per_job_timeout, store_lock))
                for _ in range(min(workers, len(jobs)))
            ]
        processed = sum(task.result() for task in tasks)
        log.info("Batch finished: processed=%s of %s", processed, len(jobs))
        return BatchResult(processed=processed)

    def _fetch(self, job_filter: JobFilter, limit: int) -> list[EnrichmentJob]:
        with self._uow_factory() as uow:
            return list(uow.repositories.jobs.list_queued(job_filter, limit=limit))

    async def _worker(
        self,
        cursor: Iterator[EnrichmentJob],
        timeout_seconds: float,
        store_lock: asyncio.Lock,
    ) -> int:
        completed = 0
        # next() on a shared iterator is atomic between awaits
        for job in cursor:
            async with store_lock:
                started = await asyncio.to_thread(self._mark_running, job.id)
            if not started:
                continue
            outcome = await self._execute(job, timeout_seconds)
            async with store_lock:
                recorded = await asyncio.to_thread(self._record, job, outcome)
            if recorded:
                completed += 1
        return completed

    async def _execute(self, job: EnrichmentJob, timeout_seconds: float) -> _JobOutcome:
        started = time.perf_counter()
        try:
            async with asyncio.timeout(timeout_seconds):
                payload = await self._handler(job)
        except TimeoutError:
            log.warning("Job %s timed out after %ss", job.id, timeout_seconds)
            error: JobPayload = {
                "type": "TimeoutError",
                "message": f"timed out after {timeout_seconds}s",
            }
            return _JobOutcome(None, error, _elapsed_ms(started))
        except Exception as exc:
            log.exception("Job %s failed", job.id)
            error = {"type": type(exc).__name__, "message": str(exc)}
            return _JobOutcome(None, error, _elapsed_ms(started))
        return _JobOutcome(payload, None, _elapsed_ms(started))

    def _mark_running(self, job_id: UUID) -> bool:
        try:
            with self._uow_factory() as uow:
                stored = uow.repositories.jobs.get(job_id)
                if stored is None:
                    log.warning("Job %s disappeared before it could start", job_id)
                    return False
                stored.start()
                uow.commit()
        except Exception:
            log.exception("Could not mark job %s as running", job_id)
            return False
        return True

    def _record(self, job: EnrichmentJob, outcome: _JobOutcome) -> bool:
        payload = outcome.payload
        try:
            with self._uow_factory() as uow:
                stored = uow.repositories.jobs.get(job.id)
                if stored is None:
                    log.warning("Job %s disappeared before its outcome was stored", job.id)
                    return False
                if payload is not None:
                    stored.complete(payload)
                elif outcome.error is not None:
                    stored.fail(outcome.error)
                uow.repositories.logs.add(self._usage_log(job, outcome))
                uow.commit()
        except Exception:
            log.exception("Could not store outcome of job %s", job.id)
            return False
        return True

    def _usage_log(self, job: EnrichmentJob, outcome: _JobOutcome) -> EnrichmentLog:
        payload = outcome.payload or {}
        confidence = payload.get("confidence_score")
        source = payload.get("source")
        return EnrichmentLog(
            tenant_id=job.tenant_id,
            job_id=job.id,
            provider=source if isinstance(source, str) else self._provider,
            success=outcome.payload is not None,
            confidence=confidence if isinstance(confidence, int) else None,
            duration_ms=outcome.duration_ms,
            error_message=str(outcome.error.get("message")) if outcome.error else None,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class PropertyJobHandler:
    """Resolve a job's address through the orchestrator."""

    def __init__(
        self,
        orchestrator: ResolutionOrchestrator,
        *,
        lookup_timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
    ) -> None:
        self._orchestrator = orchestrator
        self._lookup_timeout = lookup_timeout_seconds

    async def __call__(self, job: EnrichmentJob) -> JobPayload:
        lookup_input = LookupInput(
            address=job.address,
            jurisdiction=job.jurisdiction,
            lat=job.lat,
            lng=job.lng,
            timeout_seconds=self._lookup_timeout,
        )
        if not lookup_input.address and not lookup_input.has_coordinates:
            raise ValueError(f"Job {job.id} has neither an address nor coordinates")
        result = await self._orchestrator.resolve(lookup_input)
        return result.to_payload()


class SkipTraceJobHandler:
    """Skip-trace the occupant of a job's address."""

    def __init__(self, adapter: PersonLookupAdapter) -> None:
        self._adapter = adapter

    async def __call__(self, job: EnrichmentJob) -> JobPayload:
        if not job.address:
            raise ValueError(f"Job {job.id} has no address to skip trace")
        person = await self._adapter.lookup(PersonLookupInput(address=job.address))
        if person is None:
            return {"found": False}
        return person.to_payload()

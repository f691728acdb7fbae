"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from parcelscope.adapters.fallback import ParcelFallbackAdapter
from parcelscope.adapters.gis import GenericGISAdapter
from parcelscope.adapters.skiptrace import SkipTraceAdapter
from parcelscope.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyEnrichmentUnitOfWork,
    is_started,
    startup,
)
from parcelscope.config import get_batch_limits, get_jurisdiction_configs
from parcelscope.domain.address import address_key
from parcelscope.domain.batch import BatchWorkerPool, PropertyJobHandler, SkipTraceJobHandler
from parcelscope.domain.model import EnrichmentJob, JobStatus
from parcelscope.domain.ports.unit_of_work import EnrichmentUnitOfWork
from parcelscope.domain.registry import AdapterRegistry
from parcelscope.domain.resolution import ResolutionOrchestrator

if TYPE_CHECKING:
    from uuid import UUID

    from parcelscope.adapters.http_resilience import ClientFactory
    from parcelscope.config.gis import ProviderAdapterConfig
    from parcelscope.domain.batch import BatchResult, JobHandler
    from parcelscope.domain.model import (
        JobFilter,
        LookupInput,
        LookupResult,
        PersonEnrichmentResult,
        PersonLookupInput,
    )
    from parcelscope.domain.ports.lookup import PersonLookupAdapter, PropertyLookupAdapter

UnitOfWorkFactory = Callable[[], EnrichmentUnitOfWork]
BatchMode = Literal["property", "person"]

log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_registry(
    configs: Iterable[ProviderAdapterConfig] | None = None,
    *,
    client_factory: ClientFactory | None = None,
) -> AdapterRegistry:
    """Build the jurisdiction registry once from the adapter bindings."""

    bindings = tuple(configs) if configs is not None else get_jurisdiction_configs()
    return AdapterRegistry(
        (config.jurisdiction, GenericGISAdapter(config, client_factory=client_factory))
        for config in bindings
    )


def build_orchestrator(
    *,
    registry: AdapterRegistry | None = None,
    fallback: PropertyLookupAdapter | None = None,
) -> ResolutionOrchestrator:
    return ResolutionOrchestrator(
        registry=registry or build_registry(),
        fallback=fallback or ParcelFallbackAdapter(),
    )


def resolve_property(
    lookup_input: LookupInput,
    *,
    orchestrator: ResolutionOrchestrator | None = None,
) -> LookupResult:
    """Resolve one address through the jurisdiction and fallback chain."""

    effective = orchestrator or build_orchestrator()
    result = asyncio.run(effective.resolve(lookup_input))
    log.info(
        "Resolved %r via %s (confidence %s)",
        lookup_input.normalized_address,
        result.source,
        result.confidence_score,
    )
    return result


def skip_trace_person(
    person: PersonLookupInput,
    *,
    adapter: PersonLookupAdapter | None = None,
) -> PersonEnrichmentResult | None:
    effective = adapter or SkipTraceAdapter()
    return asyncio.run(effective.lookup(person))


def enqueue_addresses(
    addresses: Iterable[str],
    *,
    tenant_id: UUID,
    event_id: UUID | None = None,
    polygon_id: UUID | None = None,
    jurisdiction: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[EnrichmentJob]:
    """Queue one job per distinct address; duplicates by normalized key are skipped.

    Creation times are one microsecond apart in input order, so the queue hands
    jobs out in the order they were given.
    """

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyEnrichmentUnitOfWork
    enqueued_at = datetime.now(UTC)
    seen: set[str] = set()
    jobs: list[EnrichmentJob] = []
    for address in addresses:
        key = address_key(address)
        if key is None or key in seen:
            continue
        seen.add(key)
        created_at = enqueued_at + timedelta(microseconds=len(jobs))
        jobs.append(
            EnrichmentJob(
                tenant_id=tenant_id,
                event_id=event_id,
                polygon_id=polygon_id,
                address=address.strip(),
                jurisdiction=jurisdiction,
                created_at=created_at,
                updated_at=created_at,
            )
        )

    with effective_uow() as uow:
        for job in jobs:
            uow.repositories.jobs.add(job)
        uow.commit()
    log.info("Queued %s jobs for tenant %s", len(jobs), tenant_id)
    return jobs


def job_status_counts(
    job_filter: JobFilter,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> dict[JobStatus, int]:
    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyEnrichmentUnitOfWork
    with effective_uow() as uow:
        return uow.repositories.jobs.count_by_status(job_filter)


def run_enrichment_batch(
    job_filter: JobFilter,
    *,
    mode: BatchMode = "property",
    concurrency: int | None = None,
    take: int | None = None,
    timeout_seconds: float | None = None,
    handler: JobHandler | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> BatchResult:
    """Process queued jobs in ``job_filter``'s scope with bounded concurrency."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyEnrichmentUnitOfWork
    if handler is None:
        handler = (
            PropertyJobHandler(build_orchestrator())
            if mode == "property"
            else SkipTraceJobHandler(SkipTraceAdapter())
        )
    pool = BatchWorkerPool(
        unit_of_work_factory=effective_uow,
        handler=handler,
        limits=get_batch_limits(),
        provider="property" if mode == "property" else "skiptrace",
    )
    log.info(
        "Starting %s batch for %s: concurrency=%s, take=%s, timeout=%s",
        mode,
        job_filter,
        concurrency,
        take,
        timeout_seconds,
    )
    result = asyncio.run(
        pool.run(
            job_filter,
            concurrency=concurrency,
            take=take,
            timeout_seconds=timeout_seconds,
        )
    )
    log.info(
        "Finished %s batch: processed=%s, success=%s", mode, result.processed, result.success
    )
    return result

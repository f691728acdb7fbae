"""Persistence ports for the enrichment job queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from parcelscope.domain.model import EnrichmentJob, EnrichmentLog

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from parcelscope.domain.model import JobFilter, JobStatus


class JobQueueError(RuntimeError):
    """Raised when the queue store cannot be read or written."""


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class EnrichmentJobRepository(Repository[EnrichmentJob], Protocol):
    """Queue store contract. Rows are read and status-updated, never deleted."""

    def get(self, job_id: UUID) -> EnrichmentJob | None: ...

    def list_queued(self, job_filter: JobFilter, *, limit: int) -> Sequence[EnrichmentJob]: ...

    def count_by_status(self, job_filter: JobFilter) -> dict[JobStatus, int]: ...


@runtime_checkable
class EnrichmentLogRepository(Repository[EnrichmentLog], Protocol):
    def list_for_job(self, job_id: UUID) -> Sequence[EnrichmentLog]: ...

"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from parcelscope.adapters.sqlalchemy.mappings import enrichment_job_table, enrichment_log_table
from parcelscope.domain.model import EnrichmentJob, EnrichmentLog, JobStatus
from parcelscope.domain.ports.jobs import JobQueueError

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import Select
    from sqlalchemy.orm import Session

    from parcelscope.domain.model import JobFilter


def _scoped(stmt: Select[Any], job_filter: JobFilter) -> Select[Any]:
    columns = enrichment_job_table.c
    stmt = stmt.where(columns.tenant_id == job_filter.tenant_id)
    if job_filter.event_id is not None:
        stmt = stmt.where(columns.event_id == job_filter.event_id)
    if job_filter.polygon_id is not None:
        stmt = stmt.where(columns.polygon_id == job_filter.polygon_id)
    return stmt


class SqlAlchemyEnrichmentJobRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: EnrichmentJob) -> None:
        self.session.add(entity)

    def get(self, job_id: uuid.UUID) -> EnrichmentJob | None:
        try:
            return self.session.get(EnrichmentJob, job_id)
        except SQLAlchemyError as exc:
            raise JobQueueError(f"Could not load job {job_id}: {exc}") from exc

    def list_queued(self, job_filter: JobFilter, *, limit: int) -> list[EnrichmentJob]:
        columns = enrichment_job_table.c
        stmt = (
            _scoped(select(EnrichmentJob), job_filter)
            .where(columns.status == JobStatus.QUEUED)
            .order_by(columns.created_at, columns.id)
            .limit(limit)
        )
        try:
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            raise JobQueueError(f"Could not list queued jobs: {exc}") from exc

    def count_by_status(self, job_filter: JobFilter) -> dict[JobStatus, int]:
        columns = enrichment_job_table.c
        stmt = _scoped(
            select(columns.status, func.count()).group_by(columns.status),
            job_filter,
        )
        counts = dict.fromkeys(JobStatus, 0)
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise JobQueueError(f"Could not count jobs: {exc}") from exc
        for status, count in rows:
            counts[JobStatus(status)] = count
        return counts


class SqlAlchemyEnrichmentLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: EnrichmentLog) -> None:
        self.session.add(entity)

    def list_for_job(self, job_id: uuid.UUID) -> list[EnrichmentLog]:
        columns = enrichment_log_table.c
        stmt = (
            select(EnrichmentLog)
            .where(columns.job_id == job_id)
            .order_by(columns.created_at)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from parcelscope.domain.ports.jobs import EnrichmentJobRepository, EnrichmentLogRepository

    def _check_repositories(session: Session) -> None:
        _jobs: EnrichmentJobRepository = SqlAlchemyEnrichmentJobRepository(session)
        _logs: EnrichmentLogRepository = SqlAlchemyEnrichmentLogRepository(session)

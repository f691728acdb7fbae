"""SQLAlchemy mapping metadata for the enrichment queue."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from parcelscope.domain.model import EnrichmentJob, EnrichmentLog, JobStatus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    """Job timestamps are stored in UTC; naive values are refused on write."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:  # noqa: ARG002
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Refusing to store naive datetime {value.isoformat()}")
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:  # noqa: ARG002
        # SQLite drops the offset on the way back
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

enrichment_job_table = Table(
    "enrichment_job",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("tenant_id", UUIDColumnType, nullable=False),
    Column("event_id", UUIDColumnType, nullable=True),
    Column("polygon_id", UUIDColumnType, nullable=True),
    Column("address", Text, nullable=True),
    Column("lat", Float, nullable=True),
    Column("lng", Float, nullable=True),
    Column("jurisdiction", String(120), nullable=True),
    Column(
        "status",
        Enum(
            JobStatus,
            native_enum=False,
            length=16,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=JobStatus.QUEUED,
    ),
    Column("result", JSON, nullable=True),
    Column("error", JSON, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_enrichment_job_scope_status", "tenant_id", "status", "created_at"),
)

enrichment_log_table = Table(
    "enrichment_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("tenant_id", UUIDColumnType, nullable=False),
    Column("job_id", UUIDColumnType, ForeignKey("enrichment_job.id"), nullable=True),
    Column("provider", String(120), nullable=False),
    Column("success", Boolean, nullable=False, default=False),
    Column("confidence", Integer, nullable=True),
    Column("duration_ms", Integer, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the queue model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(EnrichmentJob, enrichment_job_table)
    mapper_registry.map_imperatively(EnrichmentLog, enrichment_log_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)

"""SQLAlchemy adapter package for the enrichment queue."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    enrichment_job_table,
    enrichment_log_table,
    mapper_registry,
    start_mappers,
)
from .repositories import (
    SqlAlchemyEnrichmentJobRepository,
    SqlAlchemyEnrichmentLogRepository,
)
from .unit_of_work import (
    SqlAlchemyEnrichmentUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEnrichmentJobRepository",
    "SqlAlchemyEnrichmentLogRepository",
    "SqlAlchemyEnrichmentUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "enrichment_job_table",
    "enrichment_log_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]

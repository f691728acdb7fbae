"""Domain port definitions for adapters."""

from __future__ import annotations

from .jobs import (
    EnrichmentJobRepository,
    EnrichmentLogRepository,
    JobQueueError,
    Repository,
)
from .lookup import PersonLookupAdapter, PropertyLookupAdapter
from .unit_of_work import EnrichmentRepositories, EnrichmentUnitOfWork

__all__ = [
    "EnrichmentJobRepository",
    "EnrichmentLogRepository",
    "EnrichmentRepositories",
    "EnrichmentUnitOfWork",
    "JobQueueError",
    "PersonLookupAdapter",
    "PropertyLookupAdapter",
    "Repository",
]

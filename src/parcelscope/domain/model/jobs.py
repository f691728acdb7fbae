"""Queued enrichment work and its audit trail."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from parcelscope.domain.model.enums import JobStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    type Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JobTransitionError(RuntimeError):
    """Raised when a job is moved through an illegal status transition."""


@dataclass(frozen=True, slots=True, kw_only=True)
class JobFilter:
    """Scope of a batch run: tenant plus optional event and polygon."""

    tenant_id: uuid.UUID
    event_id: uuid.UUID | None = None
    polygon_id: uuid.UUID | None = None


@dataclass(eq=False, kw_only=True)
class EnrichmentJob:
    """One address (or coordinate) waiting to be resolved.

    queued -> running -> done | error. Terminal states are never left; errored
    jobs are not requeued by this package.
    """

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    tenant_id: uuid.UUID
    event_id: uuid.UUID | None = None
    polygon_id: uuid.UUID | None = None
    address: str | None = None
    lat: float | None = None
    lng: float | None = None
    jurisdiction: str | None = None
    status: JobStatus = JobStatus.QUEUED
    result: dict[str, object] | None = None
    error: dict[str, object] | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def start(self, *, now: Clock = _utcnow) -> None:
        self._transition(JobStatus.QUEUED, JobStatus.RUNNING, now)

    def complete(self, result: dict[str, object], *, now: Clock = _utcnow) -> None:
        self._transition(JobStatus.RUNNING, JobStatus.DONE, now)
        self.result = result
        self.error = None

    def fail(self, error: dict[str, object], *, now: Clock = _utcnow) -> None:
        self._transition(JobStatus.RUNNING, JobStatus.ERROR, now)
        self.error = error

    def _transition(self, expected: JobStatus, target: JobStatus, now: Clock) -> None:
        if self.status is not expected:
            raise JobTransitionError(
                f"Job {self.id} cannot move from {self.status} to {target} "
                f"(expected {expected})"
            )
        self.status = target
        self.updated_at = now()


@dataclass(eq=False, kw_only=True)
class EnrichmentLog:
    """Per-call usage record: which provider answered, how well, how fast."""

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    tenant_id: uuid.UUID
    job_id: uuid.UUID | None = None
    provider: str
    success: bool = False
    confidence: int | None = None
    duration_ms: int | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

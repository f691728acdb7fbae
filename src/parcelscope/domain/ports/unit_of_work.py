"""Transaction boundary around the job queue repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from parcelscope.domain.ports.jobs import EnrichmentJobRepository, EnrichmentLogRepository


@dataclass(slots=True)
class EnrichmentRepositories:
    """Repositories the batch pool reads and updates."""

    jobs: EnrichmentJobRepository
    logs: EnrichmentLogRepository


@runtime_checkable
class EnrichmentUnitOfWork(Protocol):
    """Status changes and usage logs become visible only on ``commit()``.

    Leaving the ``with`` block because of an exception discards pending work.
    """

    @property
    def repositories(self) -> EnrichmentRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

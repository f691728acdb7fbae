"""Engine lifecycle and unit of work for the enrichment queue store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from parcelscope.adapters.sqlalchemy import (
    SqlAlchemyEnrichmentJobRepository,
    SqlAlchemyEnrichmentLogRepository,
    create_all_tables,
    start_mappers,
)
from parcelscope.config.storage import get_database_config
from parcelscope.domain.ports.unit_of_work import EnrichmentRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the queue store is used before ``startup()`` or misused."""


@dataclass(slots=True)
class _StoreState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def session_factory(self) -> sessionmaker[Session]:
        if self.sessions is None:
            raise StartupError(
                "Queue store not started. Call parcelscope.adapters.sqlalchemy."
                "startup() before opening a unit of work."
            )
        return self.sessions


_STATE = _StoreState()


def _create_engine(uri: str) -> Engine:
    url = make_url(uri)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # batch writes run in worker threads; they must all see one database
        return create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, future=True)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the queue store to an engine and make sure its tables exist.

    Without ``engine`` one is created from ``database_uri`` or, failing that,
    from ``get_database_config()``. A second call raises unless ``force`` is set,
    in which case the previous engine is disposed.
    """

    if _STATE.engine is not None and not force:
        raise StartupError("Queue store already started. Pass force=True to rebind it.")

    resolved = engine or _create_engine(database_uri or get_database_config().uri)
    if _STATE.engine is not None and _STATE.engine is not resolved:
        _STATE.engine.dispose()

    start_mappers()
    create_all_tables(resolved)
    _STATE.engine = resolved
    _STATE.sessions = sessionmaker(bind=resolved, expire_on_commit=False)
    log.info("Queue store bound to %s", resolved.url.render_as_string(hide_password=True))
    return resolved


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.sessions = None


class SqlAlchemyEnrichmentUnitOfWork:
    """One session over the job queue and its usage log.

    Enter it as a context manager; nothing is persisted without ``commit()``,
    and leaving the block on an exception rolls back.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or _STATE.session_factory()
        self._session: Session | None = None
        self._repositories: EnrichmentRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already active")
        self._session = self._session_factory()
        self._repositories = EnrichmentRepositories(
            jobs=SqlAlchemyEnrichmentJobRepository(self._session),
            logs=SqlAlchemyEnrichmentLogRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not active; use it in a with block")
        return self._session

    @property
    def repositories(self) -> EnrichmentRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not active; use it in a with block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from parcelscope.domain.ports.unit_of_work import EnrichmentUnitOfWork

    _uow_check: EnrichmentUnitOfWork = SqlAlchemyEnrichmentUnitOfWork()

"""Engine lifecycle and the SQLAlchemy unit of work used by import runs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from bulkimport.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from bulkimport.adapters.sqlalchemy.placeholders import SqlAlchemyPlaceholderWriter
from bulkimport.adapters.sqlalchemy.store import SqlAlchemyBatchContext, SqlAlchemyEntityStore
from bulkimport.config import get_database_uri
from bulkimport.domain.ports.unit_of_work import ImportRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before ``startup()`` or configured twice."""


class _EngineRegistry:
    """Module-wide engine and session factory, replaced as a pair."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def install(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._sessions = None

    def sessions(self) -> sessionmaker[Session]:
        if self._sessions is None:
            raise StartupError(
                "No database configured: call "
                "bulkimport.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self._sessions


_REGISTRY = _EngineRegistry()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Map the entities, create missing tables and remember the engine.

    Without ``engine`` or ``database_uri`` the configured database URI is used.
    A second call raises unless ``force`` is set.
    """

    if _REGISTRY.engine is not None and not force:
        raise StartupError("Database already configured; pass force=True to replace it.")

    resolved = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    create_all_tables(resolved)
    if _REGISTRY.engine is not None and _REGISTRY.engine is not resolved:
        _REGISTRY.release()
    _REGISTRY.install(resolved)
    log.debug("Database ready: %s", resolved.url)
    return resolved


def configured_engine() -> Engine | None:
    return _REGISTRY.engine


def is_started() -> bool:
    return _REGISTRY.engine is not None


def shutdown() -> None:
    """Dispose the engine; the next unit of work needs a new ``startup()``."""

    _REGISTRY.release()


class SqlAlchemyImportUnitOfWork:
    """One session per ``with`` block; the import ports share its transaction."""

    def __init__(self) -> None:
        self._sessions = _REGISTRY.sessions()
        self._session: Session | None = None
        self._repositories: ImportRepositories | None = None

    def __enter__(self) -> SqlAlchemyImportUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        session = self._sessions()
        self._session = session
        self._repositories = ImportRepositories(
            store=SqlAlchemyEntityStore(session),
            placeholders=SqlAlchemyPlaceholderWriter(session),
            batch=SqlAlchemyBatchContext(session),
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
            raise StartupError("Unit of work used outside its with block")
        return self._session

    @property
    def repositories(self) -> ImportRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from bulkimport.domain.ports import ImportUnitOfWork

    _uow_check: ImportUnitOfWork = SqlAlchemyImportUnitOfWork()

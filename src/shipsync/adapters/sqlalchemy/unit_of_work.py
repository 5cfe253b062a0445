"""SQLAlchemy unit of work over the settings and webhook-log tables."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from shipsync.adapters.sqlalchemy.mappings import create_all_tables
from shipsync.adapters.sqlalchemy.repositories import (
    SqlAlchemySettingsRepository,
    SqlAlchemyWebhookLogRepository,
)
from shipsync.config.storage import get_database_config
from shipsync.domain.ports.unit_of_work import StorageRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the storage adapter is used before ``startup()`` or started twice."""


class _EngineSlot:
    """Process-wide engine binding; one per interpreter, reset by ``shutdown()``."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._sessions = None

    def open_session(self) -> Session:
        if self._sessions is None:
            raise StartupError(
                "Storage not started. Call shipsync.adapters.sqlalchemy.startup() first."
            )
        return self._sessions()


_SLOT = _EngineSlot()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the storage engine and create missing tables."""

    if _SLOT.engine is not None and not force:
        raise StartupError("Storage already started. Pass force=True to rebind.")

    resolved = engine or create_engine(database_uri or get_database_config().uri, future=True)
    create_all_tables(resolved)
    _SLOT.bind(resolved)
    log.debug(f"Storage bound to {resolved.url.render_as_string(hide_password=True)}")


def configured_engine() -> Engine | None:
    return _SLOT.engine


def is_started() -> bool:
    return _SLOT.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; safe to call when nothing is bound."""

    _SLOT.release()


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; nothing is committed implicitly."""

    def __init__(self) -> None:
        if _SLOT.engine is None:
            raise StartupError(
                "Storage not started. Call shipsync.adapters.sqlalchemy.startup() first."
            )
        self._session: Session | None = None
        self._repositories: StorageRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _SLOT.open_session()
        self._repositories = StorageRepositories(
            settings=SqlAlchemySettingsRepository(self._session),
            webhook_logs=SqlAlchemyWebhookLogRepository(self._session),
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
            raise StartupError("Unit of work used outside of its 'with' block")
        return self._session

    @property
    def repositories(self) -> StorageRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside of its 'with' block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from shipsync.domain.ports.unit_of_work import StorageUnitOfWork

    _uow_check: StorageUnitOfWork = SqlAlchemyUnitOfWork()

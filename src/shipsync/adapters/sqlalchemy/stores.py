"""Settings and log collaborators built on the SQLAlchemy unit of work."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from shipsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, StartupError
from shipsync.domain.model import SETTING_KEYS
from shipsync.domain.ports import LogStore, SettingsStore, SettingsUnavailable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shipsync.domain.model import WebhookLogRecord
    from shipsync.domain.ports import StorageUnitOfWork

log = getLogger(__name__)

UnitOfWorkFactory = Callable[[], "StorageUnitOfWork"]


@dataclass(slots=True)
class SqlAlchemySettingsStore:
    unit_of_work_factory: UnitOfWorkFactory = field(default=SqlAlchemyUnitOfWork)

    def load(self) -> Mapping[str, object]:
        try:
            with self.unit_of_work_factory() as uow:
                return uow.repositories.settings.all()
        except (SQLAlchemyError, StartupError) as exc:
            raise SettingsUnavailable(str(exc)) from exc

    def update(self, values: Mapping[str, object]) -> None:
        """Upsert only the supplied keys; ``None`` values are treated as not supplied."""

        unknown = sorted(set(values) - set(SETTING_KEYS))
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        with self.unit_of_work_factory() as uow:
            for key, value in values.items():
                if value is None:
                    continue
                uow.repositories.settings.upsert(key, value)
            uow.commit()


@dataclass(slots=True)
class SqlAlchemyLogStore:
    unit_of_work_factory: UnitOfWorkFactory = field(default=SqlAlchemyUnitOfWork)

    def record(self, entry: WebhookLogRecord) -> None:
        try:
            with self.unit_of_work_factory() as uow:
                uow.repositories.webhook_logs.add(entry)
                uow.commit()
        except Exception:  # noqa: BLE001
            log.exception(f"Database Error while recording webhook log ({entry.status})")

    def recent(self, *, limit: int = 50) -> list[WebhookLogRecord]:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.webhook_logs.recent(limit=limit)


if TYPE_CHECKING:
    _settings_check: SettingsStore = SqlAlchemySettingsStore()
    _log_check: LogStore = SqlAlchemyLogStore()

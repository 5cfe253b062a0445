"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from shipsync.adapters.sqlalchemy.mappings import settings_table, webhook_log_table
from shipsync.domain.model import LogStatus, WebhookLogRecord

if TYPE_CHECKING:
    from sqlalchemy import Row
    from sqlalchemy.orm import Session


class SqlAlchemySettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def all(self) -> dict[str, object]:
        stmt = select(settings_table.c.key, settings_table.c.value)
        return {key: value for key, value in self.session.execute(stmt).tuples()}

    def upsert(self, key: str, value: object) -> None:
        exists = self.session.execute(
            select(settings_table.c.key).where(settings_table.c.key == key)
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(insert(settings_table).values(key=key, value=value))
        else:
            self.session.execute(
                update(settings_table).where(settings_table.c.key == key).values(value=value)
            )


class SqlAlchemyWebhookLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, record: WebhookLogRecord) -> None:
        values: dict[str, object] = {
            "status": record.status.value,
            "message": record.message,
            "payload": record.payload,
            "flow_log": record.flow_log,
            "summary": record.summary,
        }
        if record.date is not None:
            values["date"] = record.date
        result = self.session.execute(insert(webhook_log_table).values(**values))
        primary_key = result.inserted_primary_key
        if primary_key is not None:
            record.id = primary_key[0]

    def recent(self, *, limit: int = 50) -> list[WebhookLogRecord]:
        stmt = (
            select(webhook_log_table)
            .order_by(webhook_log_table.c.date.desc(), webhook_log_table.c.id.desc())
            .limit(limit)
        )
        return [self._to_record(row) for row in self.session.execute(stmt)]

    @staticmethod
    def _to_record(row: Row[tuple[object, ...]]) -> WebhookLogRecord:
        data = row._mapping  # noqa: SLF001
        return WebhookLogRecord(
            id=data["id"],
            date=data["date"],
            status=LogStatus(data["status"]),
            message=data["message"],
            payload=data["payload"],
            flow_log=data["flow_log"],
            summary=data["summary"],
        )

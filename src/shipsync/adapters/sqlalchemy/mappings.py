"""SQLAlchemy table metadata for settings and webhook logs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

settings_table = Table(
    "settings",
    metadata,
    Column("key", String(50), primary_key=True),
    Column("value", JSON, nullable=True),
)

webhook_log_table = Table(
    "webhook_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", UTCDateTime(), nullable=False, default=_utcnow),
    Column("status", String(50), nullable=False),
    Column("message", Text, nullable=True),
    Column("payload", JSON, nullable=True),
    Column("flow_log", JSON, nullable=True),
    Column("summary", JSON, nullable=True),
    Index("ix_webhook_logs_date", "date"),
)


def create_all_tables(engine: Engine) -> None:
    """Create any missing tables; existing tables are left untouched."""

    metadata.create_all(engine, checkfirst=True)

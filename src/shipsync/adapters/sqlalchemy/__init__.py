"""SQLAlchemy adapter package."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, settings_table, webhook_log_table
from .repositories import SqlAlchemySettingsRepository, SqlAlchemyWebhookLogRepository
from .stores import SqlAlchemyLogStore, SqlAlchemySettingsStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyLogStore",
    "SqlAlchemySettingsRepository",
    "SqlAlchemySettingsStore",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyWebhookLogRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "settings_table",
    "webhook_log_table",
    "shutdown",
    "startup",
]

"""Domain port definitions for adapters."""

from __future__ import annotations

from .commerce import DEFAULT_ORDER_FIELDS, CommercePlatform, RemoteCallError
from .persistence import (
    LogStore,
    SettingsRepository,
    SettingsStore,
    SettingsUnavailable,
    WebhookLogRepository,
)
from .unit_of_work import StorageRepositories, StorageUnitOfWork

__all__ = [
    "DEFAULT_ORDER_FIELDS",
    "CommercePlatform",
    "LogStore",
    "RemoteCallError",
    "SettingsRepository",
    "SettingsStore",
    "SettingsUnavailable",
    "StorageRepositories",
    "StorageUnitOfWork",
    "WebhookLogRepository",
]

"""Ports for the settings and audit-log collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shipsync.domain.model import WebhookLogRecord


class SettingsUnavailable(RuntimeError):
    """Raised by a settings store that cannot be reached."""


@runtime_checkable
class SettingsRepository(Protocol):
    """Key/value access to raw policy settings."""

    def all(self) -> dict[str, object]: ...

    def upsert(self, key: str, value: object) -> None: ...


@runtime_checkable
class WebhookLogRepository(Protocol):
    """Append-only access to persisted webhook log records."""

    def add(self, record: WebhookLogRecord) -> None: ...

    def recent(self, *, limit: int = 50) -> list[WebhookLogRecord]: ...


@runtime_checkable
class SettingsStore(Protocol):
    """Settings collaborator.

    ``load`` raises :class:`SettingsUnavailable` when the backing store cannot be
    read; callers fall back to the default policy. ``update`` upserts only the
    supplied keys.
    """

    def load(self) -> Mapping[str, object]: ...

    def update(self, values: Mapping[str, object]) -> None: ...


@runtime_checkable
class LogStore(Protocol):
    """Audit-log collaborator.

    ``record`` must never raise: persistence failures are logged and swallowed
    so that observability never decides the outcome of an invocation.
    """

    def record(self, entry: WebhookLogRecord) -> None: ...

    def recent(self, *, limit: int = 50) -> list[WebhookLogRecord]: ...

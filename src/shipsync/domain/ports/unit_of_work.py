"""Transaction boundary around the settings and webhook-log repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from shipsync.domain.ports.persistence import SettingsRepository, WebhookLogRepository


@dataclass(slots=True, frozen=True)
class StorageRepositories:
    settings: SettingsRepository
    webhook_logs: WebhookLogRepository


@runtime_checkable
class StorageUnitOfWork(Protocol):
    """Used as a context manager; writes persist only after ``commit()``.

    Leaving the block with an exception rolls back whatever was not committed.
    """

    @property
    def repositories(self) -> StorageRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

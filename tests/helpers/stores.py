"""In-memory settings and log stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shipsync.domain.ports import LogStore, SettingsStore, SettingsUnavailable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shipsync.domain.model import WebhookLogRecord


@dataclass
class FakeSettingsStore:
    values: dict[str, object] = field(default_factory=dict[str, object])
    unavailable: bool = False

    def load(self) -> Mapping[str, object]:
        if self.unavailable:
            raise SettingsUnavailable("settings table missing")
        return dict(self.values)

    def update(self, values: Mapping[str, object]) -> None:
        self.values.update({key: value for key, value in values.items() if value is not None})


@dataclass
class FakeLogStore:
    records: list[WebhookLogRecord] = field(default_factory=list["WebhookLogRecord"])

    def record(self, entry: WebhookLogRecord) -> None:
        self.records.append(entry)

    def recent(self, *, limit: int = 50) -> list[WebhookLogRecord]:
        return list(reversed(self.records))[:limit]

    @property
    def last(self) -> WebhookLogRecord:
        return self.records[-1]


if TYPE_CHECKING:
    _settings_check: SettingsStore = FakeSettingsStore()
    _log_check: LogStore = FakeLogStore()

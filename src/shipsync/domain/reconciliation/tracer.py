"""Append-only flow trace built during one reconciliation run."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shipsync.domain.model import JSONDict

log = getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True, frozen=True)
class FlowLogEntry:
    timestamp: datetime
    step: str
    detail: object = None

    def to_dict(self) -> JSONDict:
        return {"timestamp": self.timestamp.isoformat(), "step": self.step, "detail": self.detail}

    @property
    def error(self) -> str | None:
        if isinstance(self.detail, Mapping):
            value = cast(Mapping[str, object], self.detail).get("error")
            if value is not None:
                return str(value)
        return None


class FlowTracer:
    """Ordered log of named steps; entries are never mutated after append.

    Timestamps are clamped so they never decrease, even if the clock does.
    """

    def __init__(self, *, prefix: str = "Flow", clock: Clock = _utcnow) -> None:
        self._prefix = prefix
        self._clock = clock
        self._entries: list[FlowLogEntry] = []

    def add(self, step: str, detail: object = None) -> FlowLogEntry:
        timestamp = self._clock()
        if self._entries and timestamp < self._entries[-1].timestamp:
            timestamp = self._entries[-1].timestamp
        entry = FlowLogEntry(timestamp=timestamp, step=step, detail=detail)
        self._entries.append(entry)
        if detail is None:
            log.info(f"[{self._prefix}] {step}")
        else:
            log.info(f"[{self._prefix}] {step} {json.dumps(detail, default=str)}")
        return entry

    @property
    def entries(self) -> tuple[FlowLogEntry, ...]:
        return tuple(self._entries)

    def steps(self) -> list[str]:
        return [entry.step for entry in self._entries]

    def to_list(self) -> list[JSONDict]:
        return [entry.to_dict() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FlowLogEntry]:
        return iter(tuple(self._entries))

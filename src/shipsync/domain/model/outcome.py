"""Outcome and log records produced by one reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .enums import FulfillmentUpdateStatus, LogStatus, TagStatus

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import TargetStatus

JSONDict = dict[str, Any]


@dataclass(slots=True, frozen=True, kw_only=True)
class TagOutcome:
    status: TagStatus
    tag_name: str | None = None
    error: str | None = None

    def to_dict(self) -> JSONDict:
        return _compact(
            {"status": self.status.value, "tagName": self.tag_name, "error": self.error}
        )


@dataclass(slots=True, frozen=True, kw_only=True)
class FulfillmentOutcome:
    status: FulfillmentUpdateStatus
    retries: int = 0
    target_status: TargetStatus | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be non-negative")

    def to_dict(self) -> JSONDict:
        return _compact(
            {
                "status": self.status.value,
                "retries": self.retries,
                "targetStatus": self.target_status.value if self.target_status else None,
                "error": self.error,
            }
        )


TAG_SKIPPED = TagOutcome(status=TagStatus.SKIPPED)
FULFILLMENT_SKIPPED = FulfillmentOutcome(status=FulfillmentUpdateStatus.SKIPPED)


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconciliationOutcome:
    tag: TagOutcome = TAG_SKIPPED
    fulfillment: FulfillmentOutcome = FULFILLMENT_SKIPPED
    steps: int = 0
    manual: bool = False
    badge: str | None = None

    def to_dict(self) -> JSONDict:
        summary: JSONDict = {"tag": self.tag.to_dict(), "fulfillment": self.fulfillment.to_dict()}
        if self.manual:
            summary["manual"] = True
        if self.badge:
            summary["badge"] = self.badge
        return summary


@dataclass(slots=True, kw_only=True)
class WebhookLogRecord:
    """Persisted audit record; inserted once, never updated."""

    status: LogStatus
    message: str
    payload: object = None
    flow_log: list[JSONDict] | None = None
    summary: JSONDict | None = None
    date: datetime | None = None
    id: int | None = field(default=None)


def _compact(values: JSONDict) -> JSONDict:
    return {key: value for key, value in values.items() if value is not None}

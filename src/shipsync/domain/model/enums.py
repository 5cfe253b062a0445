"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class TargetStatus(StrEnum):
    """Delivery status an order's fulfillment should be driven to."""

    READY_FOR_DELIVERY = "ready_for_delivery"
    OUT_FOR_DELIVERY = "out_for_delivery"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    FULFILLED = "fulfilled"
    FAILURE = "failure"
    ATTEMPTED_DELIVERY = "attempted_delivery"

    @property
    def is_blue_badge(self) -> bool:
        """Pre-terminal statuses shown as "in progress" in the admin UI."""
        return self in _BLUE_BADGE_STATUSES

    @property
    def requires_tracking(self) -> bool:
        return self in _TRACKED_STATUSES


_BLUE_BADGE_STATUSES = frozenset(
    {TargetStatus.READY_FOR_DELIVERY, TargetStatus.OUT_FOR_DELIVERY, TargetStatus.IN_TRANSIT}
)
_TRACKED_STATUSES = frozenset({TargetStatus.IN_TRANSIT, TargetStatus.OUT_FOR_DELIVERY})


class FulfillmentStatus(StrEnum):
    PENDING = "pending"
    OPEN = "open"
    SUCCESS = "success"
    CANCELLED = "cancelled"
    ERROR = "error"
    FAILURE = "failure"
    PROCESSING = "processing"


class FulfillmentOrderStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    OTHER = "other"


class FulfillmentOrderAction(StrEnum):
    """Direct fulfillment-order actions that do not create a fulfillment record."""

    READY_FOR_DELIVERY = "mark_as_ready_for_delivery"
    OUT_FOR_DELIVERY = "mark_as_out_for_delivery"

    @classmethod
    def for_target(cls, target: TargetStatus) -> FulfillmentOrderAction:
        if target is TargetStatus.OUT_FOR_DELIVERY:
            return cls.OUT_FOR_DELIVERY
        return cls.READY_FOR_DELIVERY


class TagStatus(StrEnum):
    SUCCESS = "success"
    EXISTS = "exists"
    FAILED = "failed"
    SKIPPED = "skipped"


class FulfillmentUpdateStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class LogStatus(StrEnum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"

"""Snapshot entities describing an order on the commerce platform.

Snapshots are fetched fresh for every reconciliation attempt and never mutated
locally; the remote platform is the only source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import FulfillmentOrderStatus, FulfillmentStatus

if TYPE_CHECKING:
    from datetime import datetime

OrderId = int | str

_ACTIONABLE_STATUSES = frozenset(
    {FulfillmentStatus.OPEN, FulfillmentStatus.PROCESSING, FulfillmentStatus.SUCCESS}
)
_OPEN_FULFILLMENT_ORDER_STATUSES = frozenset(
    {FulfillmentOrderStatus.OPEN, FulfillmentOrderStatus.IN_PROGRESS}
)


@dataclass(slots=True, frozen=True, kw_only=True)
class Fulfillment:
    id: OrderId
    status: FulfillmentStatus | None = None
    service: str | None = None
    tracking_company: str | None = None
    created_at: datetime | None = None

    def is_actionable(self, *, success_is_actionable: bool = True) -> bool:
        """Return whether a status-transition call may target this fulfillment.

        An unknown (``None``) status never blocks reconciliation.
        """
        if self.status is None:
            return True
        if self.status is FulfillmentStatus.SUCCESS:
            return success_is_actionable
        return self.status in _ACTIONABLE_STATUSES

    def describe(self) -> dict[str, object]:
        return {
            "id": self.id,
            "status": self.status.value if self.status else None,
            "service": self.service,
            "tracking_company": self.tracking_company,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(slots=True, frozen=True, kw_only=True)
class FulfillmentOrder:
    id: OrderId
    status: FulfillmentOrderStatus
    delivery_method: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status in _OPEN_FULFILLMENT_ORDER_STATUSES


@dataclass(slots=True, frozen=True, kw_only=True)
class OrderRef:
    id: OrderId
    name: str | None = None
    email: str | None = None
    tags: tuple[str, ...] = ()
    fulfillments: tuple[Fulfillment, ...] = ()

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip()
        return any(existing.strip() == wanted for existing in self.tags)

    def first_actionable_fulfillment(
        self, *, success_is_actionable: bool = True
    ) -> Fulfillment | None:
        for fulfillment in self.fulfillments:
            if fulfillment.is_actionable(success_is_actionable=success_is_actionable):
                return fulfillment
        return None


def first_open_fulfillment_order(
    fulfillment_orders: tuple[FulfillmentOrder, ...] | list[FulfillmentOrder],
) -> FulfillmentOrder | None:
    for fulfillment_order in fulfillment_orders:
        if fulfillment_order.is_open:
            return fulfillment_order
    return None


@dataclass(slots=True, frozen=True, kw_only=True)
class TrackingInfo:
    number: str
    company: str
    url: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class FulfillmentRequest:
    """Fulfillment creation scoped to open fulfillment orders."""

    fulfillment_order_ids: tuple[OrderId, ...]
    tracking_info: TrackingInfo | None = None
    notify_customer: bool = False
    keep_open: bool = False

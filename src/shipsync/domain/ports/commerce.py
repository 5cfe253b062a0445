"""Port for the remote commerce platform's order and fulfillment API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shipsync.domain.model import (
        Fulfillment,
        FulfillmentOrder,
        FulfillmentOrderAction,
        FulfillmentRequest,
        OrderId,
        OrderRef,
    )

DEFAULT_ORDER_FIELDS: tuple[str, ...] = ("id", "name", "email", "tags", "fulfillments")


class RemoteCallError(RuntimeError):
    """Raised by adapters when a single remote call fails.

    Reconciliation treats this as transient: it is recorded in the flow trace
    and may trigger a fallback strategy or the next attempt.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class CommercePlatform(Protocol):
    """Abstract order/fulfillment operations consumed by the engine."""

    async def get_order(
        self, order_id: OrderId, *, fields: Sequence[str] = DEFAULT_ORDER_FIELDS
    ) -> OrderRef: ...

    async def find_order_by_name(self, name: str) -> OrderRef | None: ...

    async def update_order_tags(self, order_id: OrderId, tags: str) -> None: ...

    async def list_fulfillment_orders(self, order_id: OrderId) -> list[FulfillmentOrder]: ...

    async def create_fulfillment_event(
        self, order_id: OrderId, fulfillment_id: OrderId, status: str
    ) -> None: ...

    async def create_fulfillment(self, request: FulfillmentRequest) -> Fulfillment: ...

    async def reopen_fulfillment(self, order_id: OrderId, fulfillment_id: OrderId) -> None: ...

    async def mark_fulfillment_order(
        self, fulfillment_order_id: OrderId, action: FulfillmentOrderAction
    ) -> None: ...


__all__ = ["DEFAULT_ORDER_FIELDS", "CommercePlatform", "RemoteCallError"]

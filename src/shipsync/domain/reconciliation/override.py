"""Manual "force status" override for orders stuck in automation.

Unlike :class:`FulfillmentReconciler` this runs a single attempt. For
pre-terminal (blue-badge) statuses it first tries to mark an open fulfillment
order directly, because creating a fulfillment record closes the "in progress"
badge in the admin UI.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from shipsync.domain.model import (
    FulfillmentOrderAction,
    FulfillmentRequest,
    FulfillmentStatus,
    TrackingInfo,
    first_open_fulfillment_order,
)
from shipsync.domain.ports import RemoteCallError

from .errors import OrderNotFound
from .payload import DEFAULT_TRACKING_COMPANY

if TYPE_CHECKING:
    from shipsync.domain.model import OrderId, OrderRef, TargetStatus
    from shipsync.domain.ports import CommercePlatform

    from .reconciler import Sleeper
    from .tracer import FlowTracer

MANUAL_TRACKING_NUMBER = "MANUAL-FORCE"
OVERRIDE_ORDER_FIELDS: tuple[str, ...] = ("id", "name", "email", "fulfillments", "tags")


class OverrideStrategy(StrEnum):
    BADGE = "badge"
    LEGACY_FULFILLMENT = "legacy_fulfillment"
    FULFILLMENT_ORDER = "fulfillment_order"
    NONE = "none"


@dataclass(slots=True, frozen=True)
class OverrideOptions:
    settle_delay: float = 3.0
    success_is_actionable: bool = True


@dataclass(slots=True, frozen=True)
class OverrideResult:
    applied: bool
    strategy: OverrideStrategy
    message: str
    error: str | None = None


@dataclass(slots=True)
class ManualOverride:
    platform: CommercePlatform
    tracer: FlowTracer
    options: OverrideOptions = field(default_factory=OverrideOptions)
    sleep: Sleeper = asyncio.sleep

    async def resolve_order(self, reference: str) -> OrderRef:
        """Fetch an order by numeric id, or by name for anything else."""

        ref = str(reference).strip()
        if ref.isdigit():
            try:
                order = await self.platform.get_order(ref, fields=OVERRIDE_ORDER_FIELDS)
            except RemoteCallError as exc:
                raise OrderNotFound(f"Order {ref} not found: {exc}") from exc
        else:
            self.tracer.add("OrderId is not numeric, searching by name", {"name": ref})
            try:
                found = await self.platform.find_order_by_name(ref)
            except RemoteCallError as exc:
                raise OrderNotFound(f"Order Name {ref} not found: {exc}") from exc
            if found is None:
                raise OrderNotFound(f"Order Name {ref} not found")
            self.tracer.add("Order found by name", {"id": found.id})
            order = found

        self.tracer.add(
            "Order Fetched", {"name": order.name, "fulfillmentCount": len(order.fulfillments)}
        )
        return order

    async def force(
        self,
        order: OrderRef,
        target: TargetStatus,
        *,
        tracking_number: str | None = None,
        tracking_company: str | None = None,
    ) -> OverrideResult:
        if target.is_blue_badge:
            badge = await self._mark_badge(order, target)
            if badge is not None:
                return badge

        legacy = await self._update_legacy(order, target)
        if legacy is not None:
            return legacy

        return await self._create_from_fulfillment_order(
            order,
            target,
            tracking=TrackingInfo(
                number=(tracking_number or "").strip() or MANUAL_TRACKING_NUMBER,
                company=(tracking_company or "").strip() or DEFAULT_TRACKING_COMPANY,
            ),
        )

    async def _mark_badge(self, order: OrderRef, target: TargetStatus) -> OverrideResult | None:
        self.tracer.add(
            f"Action: Mark as Ready/Out for Delivery requested for status: {target.value}"
        )
        try:
            fulfillment_orders = await self.platform.list_fulfillment_orders(order.id)
        except RemoteCallError as exc:
            self.tracer.add("Failed to check Fulfillment Orders", {"error": str(exc)})
            return self._failed(f"Fulfillment order lookup failed: {exc}")

        open_order = first_open_fulfillment_order(fulfillment_orders)
        if open_order is None:
            self.tracer.add("No open/in-progress fulfillment order found for this action")
            return None

        action = FulfillmentOrderAction.for_target(target)
        self.tracer.add(
            "Found Fulfillment Order to mark",
            {"id": open_order.id, "currentStatus": open_order.status.value},
        )
        try:
            await self.platform.mark_fulfillment_order(open_order.id, action)
        except RemoteCallError as exc:
            self.tracer.add(f"Failed to mark as {action.value}", {"error": str(exc)})
            return None

        self.tracer.add(f"Successfully marked as {action.value}")
        return OverrideResult(
            applied=True,
            strategy=OverrideStrategy.BADGE,
            message=f"Marked as {target.value} (Blue Badge)",
        )

    async def _update_legacy(self, order: OrderRef, target: TargetStatus) -> OverrideResult | None:
        fulfillment = order.first_actionable_fulfillment(
            success_is_actionable=self.options.success_is_actionable
        )
        if fulfillment is None:
            self.tracer.add("No active fulfillment found. Checking Fulfillment Orders...")
            return None

        self.tracer.add(
            "Updating existing legacy fulfillment",
            {
                "id": fulfillment.id,
                "status": fulfillment.status.value if fulfillment.status else None,
            },
        )
        if fulfillment.status is FulfillmentStatus.SUCCESS and target.is_blue_badge:
            self.tracer.add("Attempting to re-open fulfillment")
            await self._reopen(order.id, fulfillment.id, success_step="Fulfillment re-opened")

        try:
            self.tracer.add(f"Creating fulfillment event: {target.value}")
            await self.platform.create_fulfillment_event(order.id, fulfillment.id, target.value)
        except RemoteCallError as exc:
            self.tracer.add("Error updating fulfillment event", {"error": str(exc)})
            return None

        self.tracer.add("Fulfillment event created successfully")
        return OverrideResult(
            applied=True,
            strategy=OverrideStrategy.LEGACY_FULFILLMENT,
            message="Status updated successfully",
        )

    async def _create_from_fulfillment_order(
        self,
        order: OrderRef,
        target: TargetStatus,
        *,
        tracking: TrackingInfo,
    ) -> OverrideResult:
        try:
            fulfillment_orders = await self.platform.list_fulfillment_orders(order.id)
        except RemoteCallError as exc:
            self.tracer.add("Failed to check Fulfillment Orders", {"error": str(exc)})
            return self._failed(f"Fulfillment order lookup failed: {exc}")

        open_order = first_open_fulfillment_order(fulfillment_orders)
        if open_order is None:
            self.tracer.add("No open fulfillment orders found. Cannot force status change.")
            return OverrideResult(
                applied=False,
                strategy=OverrideStrategy.NONE,
                message="No open fulfillment orders found",
            )

        self.tracer.add("Found open Fulfillment Order", {"id": open_order.id})
        if target.requires_tracking:
            request = FulfillmentRequest(
                fulfillment_order_ids=(open_order.id,),
                tracking_info=tracking,
                keep_open=True,
            )
        else:
            request = FulfillmentRequest(fulfillment_order_ids=(open_order.id,))

        try:
            created = await self.platform.create_fulfillment(request)
        except RemoteCallError as exc:
            self.tracer.add("Error creating fulfillment", {"error": str(exc)})
            return self._failed(f"Fulfillment creation failed: {exc}")

        self.tracer.add(
            "Fulfillment created (V2)",
            {"id": created.id, "status": created.status.value if created.status else None},
        )
        if created.status is FulfillmentStatus.SUCCESS and target.is_blue_badge:
            await self._reopen(order.id, created.id, success_step="Fulfillment explicitly opened")

        delay = self.options.settle_delay
        self.tracer.add(f"Waiting {delay:g}s for fulfillment to settle")
        await self.sleep(delay)

        try:
            await self.platform.create_fulfillment_event(order.id, created.id, target.value)
        except RemoteCallError as exc:
            self.tracer.add("Error adding status event", {"error": str(exc)})
            return self._failed(f"Status event failed: {exc}")

        self.tracer.add("Fulfillment event created")
        return OverrideResult(
            applied=True,
            strategy=OverrideStrategy.FULFILLMENT_ORDER,
            message="Status updated successfully",
        )

    async def _reopen(
        self, order_id: OrderId, fulfillment_id: OrderId, *, success_step: str
    ) -> None:
        try:
            await self.platform.reopen_fulfillment(order_id, fulfillment_id)
        except RemoteCallError as exc:
            self.tracer.add("Re-open failed (already open or not supported)", {"error": str(exc)})
            return
        self.tracer.add(success_step)

    @staticmethod
    def _failed(message: str) -> OverrideResult:
        return OverrideResult(
            applied=False,
            strategy=OverrideStrategy.NONE,
            message=message,
            error=message,
        )

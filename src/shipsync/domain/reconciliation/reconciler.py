"""Fulfillment status reconciliation state machine.

The commerce platform exposes fulfillment lifecycle through two overlapping
representations: legacy fulfillment records and fulfillment orders. Each
attempt tries them in order:

``ATTEMPT_START`` -> ``STRATEGY_A`` -> ``STRATEGY_B`` -> ``WAIT`` -> ``ATTEMPT_START`` ...

until ``SUCCEEDED`` or ``EXHAUSTED``. Fulfillment orders are not immediately
consistent after order creation, so every attempt after the first re-fetches
the order before scanning it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from shipsync.domain.model import (
    FulfillmentOutcome,
    FulfillmentRequest,
    FulfillmentUpdateStatus,
    OrderRef,
    first_open_fulfillment_order,
)
from shipsync.domain.ports import RemoteCallError

from .payload import extract_tracking_info

if TYPE_CHECKING:
    from shipsync.domain.model import FulfillmentOrder, OrderId, TargetStatus
    from shipsync.domain.ports import CommercePlatform

    from .tracer import FlowTracer


Sleeper = Callable[[float], Awaitable[None]]

FULFILLMENT_FIELDS: tuple[str, ...] = ("id", "fulfillments")
EXHAUSTED_ERROR = "No open fulfillment found after retries"


class ReconcileState(StrEnum):
    ATTEMPT_START = "attempt_start"
    STRATEGY_A = "strategy_a"
    STRATEGY_B = "strategy_b"
    WAIT = "wait"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = frozenset({ReconcileState.SUCCEEDED, ReconcileState.EXHAUSTED})


@dataclass(slots=True, frozen=True)
class ReconcilerOptions:
    max_attempts: int = 3
    inter_attempt_delay: float = 3.0
    success_is_actionable: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.inter_attempt_delay < 0:
            raise ValueError("inter_attempt_delay must be non-negative")


def build_fulfillment_request(
    fulfillment_order: FulfillmentOrder,
    target: TargetStatus,
    payload: object,
    *,
    tracer: FlowTracer,
) -> FulfillmentRequest:
    """Fulfillment creation for ``fulfillment_order``, tracked when the status needs it."""

    if not target.requires_tracking:
        return FulfillmentRequest(fulfillment_order_ids=(fulfillment_order.id,))

    tracking = extract_tracking_info(payload)
    tracer.add(
        "Extracted tracking info",
        {"trackingNumber": tracking.number, "trackingCompany": tracking.company},
    )
    return FulfillmentRequest(
        fulfillment_order_ids=(fulfillment_order.id,),
        tracking_info=tracking,
        notify_customer=True,
    )


@dataclass(slots=True)
class _Run:
    order_id: OrderId
    target: TargetStatus
    payload: object
    snapshot: OrderRef | None
    attempt: int = 0


@dataclass(slots=True)
class FulfillmentReconciler:
    """Drive one order's fulfillment to a target status within a bounded number of attempts."""

    platform: CommercePlatform
    tracer: FlowTracer
    options: ReconcilerOptions = field(default_factory=ReconcilerOptions)
    sleep: Sleeper = asyncio.sleep
    history: list[ReconcileState] = field(default_factory=list["ReconcileState"], init=False)

    async def reconcile(
        self,
        order_id: OrderId,
        target: TargetStatus,
        *,
        snapshot: OrderRef | None = None,
        payload: object = None,
    ) -> FulfillmentOutcome:
        """Run attempts until the status is applied or every attempt is spent.

        ``snapshot`` is an order fetched earlier in the same invocation; it is
        only trusted for the first attempt.
        """

        run = _Run(order_id=order_id, target=target, payload=payload, snapshot=snapshot)
        handlers = {
            ReconcileState.ATTEMPT_START: self._start_attempt,
            ReconcileState.STRATEGY_A: self._legacy_fulfillment,
            ReconcileState.STRATEGY_B: self._fulfillment_order,
            ReconcileState.WAIT: self._wait,
        }
        self.history = []
        state = ReconcileState.ATTEMPT_START
        while state not in TERMINAL_STATES:
            self.history.append(state)
            state = await handlers[state](run)
        self.history.append(state)

        if state is ReconcileState.SUCCEEDED:
            return FulfillmentOutcome(
                status=FulfillmentUpdateStatus.SUCCESS,
                retries=run.attempt - 1,
                target_status=target,
            )

        self.tracer.add(
            f"Failed to update fulfillment after {self.options.max_attempts} attempts"
        )
        return FulfillmentOutcome(
            status=FulfillmentUpdateStatus.FAILED,
            retries=self.options.max_attempts,
            target_status=target,
            error=EXHAUSTED_ERROR,
        )

    async def _start_attempt(self, run: _Run) -> ReconcileState:
        run.attempt += 1
        self.tracer.add(
            f"Fulfillment Update Attempt {run.attempt}/{self.options.max_attempts}"
        )
        if run.attempt == 1 and run.snapshot is not None:
            return ReconcileState.STRATEGY_A

        step = "Re-fetching order from Shopify..." if run.attempt > 1 else "Fetching order"
        self.tracer.add(step)
        try:
            run.snapshot = await self.platform.get_order(run.order_id, fields=FULFILLMENT_FIELDS)
        except RemoteCallError as exc:
            # Degrade to the last known snapshot rather than abandoning the attempt.
            self.tracer.add("Error re-fetching order", {"error": str(exc)})
            if run.snapshot is None:
                run.snapshot = OrderRef(id=run.order_id)
        return ReconcileState.STRATEGY_A

    async def _legacy_fulfillment(self, run: _Run) -> ReconcileState:
        order = self._snapshot(run)
        self.tracer.add(
            f"Scanning {len(order.fulfillments)} fulfillments",
            {"fulfillments": [fulfillment.describe() for fulfillment in order.fulfillments]},
        )
        target = order.first_actionable_fulfillment(
            success_is_actionable=self.options.success_is_actionable
        )
        if target is None:
            self.tracer.add(
                "No legacy fulfillment found. Checking Fulfillment Orders (Strategy B)..."
            )
            return ReconcileState.STRATEGY_B

        self.tracer.add(
            "Found target legacy fulfillment",
            {"id": target.id, "status": target.status.value if target.status else None},
        )
        try:
            self.tracer.add(f"Creating fulfillment event: {run.target.value}")
            await self.platform.create_fulfillment_event(order.id, target.id, run.target.value)
        except RemoteCallError as exc:
            self.tracer.add("Error updating fulfillment event", {"error": str(exc)})
            return ReconcileState.STRATEGY_B

        self.tracer.add("Fulfillment event created successfully")
        return ReconcileState.SUCCEEDED

    async def _fulfillment_order(self, run: _Run) -> ReconcileState:
        order = self._snapshot(run)
        try:
            fulfillment_orders = await self.platform.list_fulfillment_orders(order.id)
        except RemoteCallError as exc:
            self.tracer.add("Failed to check Fulfillment Orders", {"error": str(exc)})
            return ReconcileState.WAIT

        open_order = first_open_fulfillment_order(fulfillment_orders)
        if open_order is None:
            self.tracer.add(
                "No open Fulfillment Order found",
                {"count": len(fulfillment_orders), "error": "No actionable target"},
            )
            return ReconcileState.WAIT

        self.tracer.add(
            "Found open Fulfillment Order",
            {
                "id": open_order.id,
                "status": open_order.status.value,
                "delivery_method": open_order.delivery_method or "N/A",
            },
        )
        request = build_fulfillment_request(open_order, run.target, run.payload, tracer=self.tracer)
        try:
            self.tracer.add("Creating Fulfillment from Order (V2)")
            created = await self.platform.create_fulfillment(request)
        except RemoteCallError as exc:
            self.tracer.add("Error creating fulfillment", {"error": str(exc)})
            return ReconcileState.WAIT

        self.tracer.add(
            "Fulfillment created successfully (V2)",
            {"id": created.id, "status": created.status.value if created.status else None},
        )
        try:
            await self.platform.create_fulfillment_event(order.id, created.id, run.target.value)
        except RemoteCallError as exc:
            self.tracer.add("Error adding status event", {"error": str(exc)})
            return ReconcileState.WAIT

        self.tracer.add(f"Applied status event: {run.target.value}")
        return ReconcileState.SUCCEEDED

    async def _wait(self, run: _Run) -> ReconcileState:
        if run.attempt >= self.options.max_attempts:
            return ReconcileState.EXHAUSTED
        delay = self.options.inter_attempt_delay
        self.tracer.add(f"Waiting {delay:g}s before retry...", {"attempt": run.attempt})
        await self.sleep(delay)
        return ReconcileState.ATTEMPT_START

    @staticmethod
    def _snapshot(run: _Run) -> OrderRef:
        if run.snapshot is None:
            return OrderRef(id=run.order_id)
        return run.snapshot

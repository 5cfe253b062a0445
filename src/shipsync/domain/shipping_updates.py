"""Application services for shipping webhooks and manual status overrides."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

from shipsync.domain.model import (
    FULFILLMENT_SKIPPED,
    TAG_SKIPPED,
    FulfillmentOutcome,
    FulfillmentUpdateStatus,
    LogStatus,
    TargetStatus,
    WebhookLogRecord,
)
from shipsync.domain.ports import DEFAULT_ORDER_FIELDS, RemoteCallError
from shipsync.domain.reconciliation import (
    FlowTracer,
    FulfillmentReconciler,
    ManualOverride,
    MissingOrderIdentifier,
    OperationError,
    OrderNotFound,
    OverrideOptions,
    OverrideStrategy,
    ReconcilerOptions,
    check_system_enabled,
    check_test_filter,
    ensure_tag,
    extract_customer_email,
    load_policy,
    resolve_order_id,
    summarize,
)

if TYPE_CHECKING:
    from shipsync.domain.model import JSONDict, OrderId, ReconciliationOutcome
    from shipsync.domain.ports import CommercePlatform, LogStore, SettingsStore
    from shipsync.domain.reconciliation import Sleeper

log = getLogger(__name__)

DEFAULT_TOPIC = "test"
TOPIC_HEADER = "x-shopify-topic"
SHOP_HEADER = "x-shopify-shop-domain"


@dataclass(slots=True, frozen=True)
class WebhookResult:
    """Outcome of one webhook invocation, shaped for a transport boundary."""

    accepted: bool
    status_code: int
    reason: str | None = None
    outcome: ReconciliationOutcome | None = None
    flow_log: list[JSONDict] = field(default_factory=list["JSONDict"])


@dataclass(slots=True, frozen=True)
class ForceStatusResult:
    success: bool
    message: str
    status_code: int
    flow_log: list[JSONDict] = field(default_factory=list["JSONDict"])
    outcome: ReconciliationOutcome | None = None


def _header(headers: Mapping[str, str] | None, name: str) -> str | None:
    if not headers:
        return None
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _persist(
    log_store: LogStore,
    *,
    status: LogStatus,
    message: str,
    payload: object,
    tracer: FlowTracer,
    outcome: ReconciliationOutcome | None,
) -> None:
    log_store.record(
        WebhookLogRecord(
            status=status,
            message=message,
            payload=payload,
            flow_log=tracer.to_list(),
            summary=outcome.to_dict() if outcome is not None else None,
        )
    )


async def process_shipping_update(
    payload: object,
    headers: Mapping[str, str] | None = None,
    *,
    platform: CommercePlatform,
    settings_store: SettingsStore,
    log_store: LogStore,
    options: ReconcilerOptions | None = None,
    sleep: Sleeper = asyncio.sleep,
    tracer: FlowTracer | None = None,
) -> WebhookResult:
    """Handle one shipping-provider event end to end and persist its log record."""

    tracer = tracer or FlowTracer(prefix="Flow")
    topic = _header(headers, TOPIC_HEADER) or DEFAULT_TOPIC
    tracer.add("Webhook received", {"topic": topic, "shop": _header(headers, SHOP_HEADER)})

    policy = load_policy(settings_store, tracer=tracer)
    gate = check_system_enabled(policy, tracer=tracer)
    if not gate.proceed:
        log.info("System is disabled. Skipping webhook.")
        _persist(
            log_store,
            status=LogStatus.INFO,
            message=gate.reason or "System disabled",
            payload=payload,
            tracer=tracer,
            outcome=None,
        )
        return WebhookResult(
            accepted=True, status_code=200, reason=gate.reason, flow_log=tracer.to_list()
        )

    try:
        order_id = resolve_order_id(payload, tracer=tracer)
    except MissingOrderIdentifier as exc:
        _persist(
            log_store,
            status=LogStatus.ERROR,
            message=str(exc),
            payload=payload,
            tracer=tracer,
            outcome=None,
        )
        return WebhookResult(
            accepted=False, status_code=400, reason=str(exc), flow_log=tracer.to_list()
        )

    tracer.add("Processing Order", {"orderId": order_id})
    tag = TAG_SKIPPED
    fulfillment = (
        FulfillmentOutcome(
            status=FulfillmentUpdateStatus.SKIPPED, target_status=policy.target_status
        )
        if policy.fulfillment_update_enabled
        else FULFILLMENT_SKIPPED
    )

    try:
        tracer.add("Fetching Order from Shopify")
        try:
            order = await platform.get_order(order_id, fields=DEFAULT_ORDER_FIELDS)
        except RemoteCallError as exc:
            raise OperationError(str(exc)) from exc
        tracer.add(
            "Order Fetched",
            {"tags": ",".join(order.tags), "fulfillmentCount": len(order.fulfillments)},
        )

        gate = check_test_filter(
            policy, extract_customer_email(payload) or order.email, tracer=tracer
        )
        if not gate.proceed:
            _persist(
                log_store,
                status=LogStatus.INFO,
                message=gate.reason or "Skipped",
                payload=payload,
                tracer=tracer,
                outcome=None,
            )
            return WebhookResult(
                accepted=True, status_code=200, reason=gate.reason, flow_log=tracer.to_list()
            )

        tag = await ensure_tag(
            platform,
            order_id,
            policy.tag_name,
            tracer=tracer,
            enabled=policy.tagging_enabled,
            snapshot=order,
        )

        if policy.fulfillment_update_enabled:
            reconciler = FulfillmentReconciler(
                platform=platform,
                tracer=tracer,
                options=options or ReconcilerOptions(),
                sleep=sleep,
            )
            fulfillment = await reconciler.reconcile(
                order_id, policy.target_status, snapshot=order, payload=payload
            )
        else:
            tracer.add(
                "Fulfillment update skipped", {"enabled": policy.fulfillment_update_enabled}
            )
    except Exception as exc:  # noqa: BLE001
        if not isinstance(exc, OperationError):
            log.exception(f"Unexpected error while processing order {order_id}")
        tracer.add("Operation Error", {"message": str(exc)})
        outcome = summarize(tag=tag, fulfillment=fulfillment, entries=tracer.entries)
        _persist(
            log_store,
            status=LogStatus.ERROR,
            message=f"Operation failed: {exc}",
            payload=payload,
            tracer=tracer,
            outcome=outcome,
        )
        return WebhookResult(
            accepted=False,
            status_code=500,
            reason="Error processing order",
            outcome=outcome,
            flow_log=tracer.to_list(),
        )

    outcome = summarize(tag=tag, fulfillment=fulfillment, entries=tracer.entries)
    if fulfillment.status is FulfillmentUpdateStatus.FAILED:
        _persist(
            log_store,
            status=LogStatus.WARNING,
            message="Fulfillment update skipped - no open fulfillment found after retries",
            payload=payload,
            tracer=tracer,
            outcome=outcome,
        )
    else:
        _persist(
            log_store,
            status=LogStatus.SUCCESS,
            message=f"Processed Order {order_id}",
            payload=payload,
            tracer=tracer,
            outcome=outcome,
        )
    return WebhookResult(
        accepted=True, status_code=200, outcome=outcome, flow_log=tracer.to_list()
    )


async def force_fulfillment_status(
    order_reference: OrderId | None,
    status: str | None,
    *,
    platform: CommercePlatform,
    log_store: LogStore,
    tracking_number: str | None = None,
    tracking_company: str | None = None,
    options: OverrideOptions | None = None,
    sleep: Sleeper = asyncio.sleep,
    tracer: FlowTracer | None = None,
) -> ForceStatusResult:
    """Force ``status`` onto an order, identified by numeric id or order name."""

    tracer = tracer or FlowTracer(prefix="Force")
    reference = str(order_reference).strip() if order_reference is not None else ""
    if not reference or not status:
        return ForceStatusResult(
            success=False, message="Missing orderId or status", status_code=400
        )
    try:
        target = TargetStatus(status.strip().lower())
    except ValueError:
        return ForceStatusResult(
            success=False, message=f"Unsupported status: {status}", status_code=400
        )

    request_payload = {"manual": True, "orderId": reference, "status": target.value}
    tracer.add("Manual Force Request Received", {"orderId": reference, "status": target.value})
    override = ManualOverride(
        platform=platform,
        tracer=tracer,
        options=options or OverrideOptions(),
        sleep=sleep,
    )

    try:
        order = await override.resolve_order(reference)
    except OrderNotFound as exc:
        tracer.add("Order not found", {"error": str(exc)})
        return ForceStatusResult(
            success=False, message=str(exc), status_code=404, flow_log=tracer.to_list()
        )

    try:
        result = await override.force(
            order,
            target,
            tracking_number=tracking_number,
            tracking_company=tracking_company,
        )
    except Exception as exc:  # noqa: BLE001
        log.exception(f"Manual override failed for order {reference}")
        tracer.add("FATAL ERROR", {"message": str(exc)})
        _persist(
            log_store,
            status=LogStatus.ERROR,
            message=f"Manual override failed: {exc}",
            payload=request_payload,
            tracer=tracer,
            outcome=None,
        )
        return ForceStatusResult(
            success=False, message=str(exc), status_code=500, flow_log=tracer.to_list()
        )

    fulfillment = FulfillmentOutcome(
        status=(
            FulfillmentUpdateStatus.SUCCESS if result.applied else FulfillmentUpdateStatus.FAILED
        ),
        target_status=target,
        error=result.error if not result.applied else None,
    )
    outcome = summarize(
        tag=TAG_SKIPPED,
        fulfillment=fulfillment,
        entries=tracer.entries,
        manual=True,
        badge="blue" if result.strategy is OverrideStrategy.BADGE else None,
    )

    if result.applied:
        _persist(
            log_store,
            status=LogStatus.SUCCESS,
            message=f"Manually forced status: {target.value} for Order {order.id}",
            payload=request_payload,
            tracer=tracer,
            outcome=outcome,
        )
        return ForceStatusResult(
            success=True,
            message=result.message,
            status_code=200,
            flow_log=tracer.to_list(),
            outcome=outcome,
        )

    _persist(
        log_store,
        status=LogStatus.WARNING,
        message=f"Manual override for Order {order.id} not applied: {result.message}",
        payload=request_payload,
        tracer=tracer,
        outcome=outcome,
    )
    return ForceStatusResult(
        success=False,
        message=result.message,
        status_code=500 if result.error else 400,
        flow_log=tracer.to_list(),
        outcome=outcome,
    )


def coerce_headers(headers: object) -> dict[str, str]:
    """Best-effort conversion of transport headers to a plain ``str -> str`` mapping."""

    if not isinstance(headers, Mapping):
        return {}
    mapping = cast(Mapping[object, object], headers)
    return {str(key): str(value) for key, value in mapping.items() if value is not None}

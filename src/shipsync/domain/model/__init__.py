"""Domain model for order fulfillment reconciliation."""

from __future__ import annotations

from .enums import (
    FulfillmentOrderAction,
    FulfillmentOrderStatus,
    FulfillmentStatus,
    FulfillmentUpdateStatus,
    LogStatus,
    TagStatus,
    TargetStatus,
)
from .order import (
    Fulfillment,
    FulfillmentOrder,
    FulfillmentRequest,
    OrderId,
    OrderRef,
    TrackingInfo,
    first_open_fulfillment_order,
)
from .outcome import (
    FULFILLMENT_SKIPPED,
    TAG_SKIPPED,
    FulfillmentOutcome,
    JSONDict,
    ReconciliationOutcome,
    TagOutcome,
    WebhookLogRecord,
)
from .policy import DEFAULT_POLICY, SETTING_KEYS, Policy, coerce_bool

__all__ = [
    "DEFAULT_POLICY",
    "FULFILLMENT_SKIPPED",
    "SETTING_KEYS",
    "TAG_SKIPPED",
    "Fulfillment",
    "FulfillmentOrder",
    "FulfillmentOrderAction",
    "FulfillmentOrderStatus",
    "FulfillmentOutcome",
    "FulfillmentRequest",
    "FulfillmentStatus",
    "FulfillmentUpdateStatus",
    "JSONDict",
    "LogStatus",
    "OrderId",
    "OrderRef",
    "Policy",
    "ReconciliationOutcome",
    "TagOutcome",
    "TagStatus",
    "TargetStatus",
    "TrackingInfo",
    "WebhookLogRecord",
    "coerce_bool",
    "first_open_fulfillment_order",
]

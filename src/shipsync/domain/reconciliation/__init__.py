"""Fulfillment status reconciliation engine.

Flow of one invocation:
1) resolve the order identifier from the event payload
2) gate on the policy snapshot
3) ensure the order tag (optional)
4) drive the fulfillment to the target status (optional)
5) summarise the outcome for the audit log
"""

from __future__ import annotations

from .errors import MissingOrderIdentifier, OperationError, OrderNotFound, ReconciliationError
from .gate import GateDecision, check_system_enabled, check_test_filter, load_policy
from .override import ManualOverride, OverrideOptions, OverrideResult, OverrideStrategy
from .payload import (
    NestedOrderPayload,
    PayloadShape,
    TopLevelOrderPayload,
    UnrecognizedPayload,
    classify_payload,
    extract_customer_email,
    extract_tracking_info,
    resolve_order_id,
)
from .reconciler import (
    FulfillmentReconciler,
    ReconcilerOptions,
    ReconcileState,
    Sleeper,
    build_fulfillment_request,
)
from .summary import last_error, summarize
from .tagging import ensure_tag
from .tracer import FlowLogEntry, FlowTracer

__all__ = [
    "FlowLogEntry",
    "FlowTracer",
    "FulfillmentReconciler",
    "GateDecision",
    "ManualOverride",
    "MissingOrderIdentifier",
    "NestedOrderPayload",
    "OperationError",
    "OrderNotFound",
    "OverrideOptions",
    "OverrideResult",
    "OverrideStrategy",
    "PayloadShape",
    "ReconcileState",
    "ReconcilerOptions",
    "ReconciliationError",
    "Sleeper",
    "TopLevelOrderPayload",
    "UnrecognizedPayload",
    "build_fulfillment_request",
    "check_system_enabled",
    "check_test_filter",
    "classify_payload",
    "ensure_tag",
    "extract_customer_email",
    "extract_tracking_info",
    "last_error",
    "load_policy",
    "resolve_order_id",
    "summarize",
]

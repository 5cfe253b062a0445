"""Reduce per-step outcomes and the flow trace into a summary record."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from shipsync.domain.model import (
    FulfillmentUpdateStatus,
    ReconciliationOutcome,
    TagStatus,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shipsync.domain.model import FulfillmentOutcome, TagOutcome

    from .tracer import FlowLogEntry


def last_error(entries: Sequence[FlowLogEntry]) -> str | None:
    for entry in reversed(entries):
        if entry.error is not None:
            return entry.error
    return None


def summarize(
    *,
    tag: TagOutcome,
    fulfillment: FulfillmentOutcome,
    entries: Sequence[FlowLogEntry],
    manual: bool = False,
    badge: str | None = None,
) -> ReconciliationOutcome:
    """Build the summary; failed outcomes without a message borrow the last traced error."""

    if tag.status is TagStatus.FAILED and tag.error is None:
        tag = replace(tag, error=last_error(entries))
    if fulfillment.status is FulfillmentUpdateStatus.FAILED and fulfillment.error is None:
        fulfillment = replace(fulfillment, error=last_error(entries))
    return ReconciliationOutcome(
        tag=tag,
        fulfillment=fulfillment,
        steps=len(entries),
        manual=manual,
        badge=badge,
    )

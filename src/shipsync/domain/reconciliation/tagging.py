"""Idempotent order tagging."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shipsync.domain.model import TagOutcome, TagStatus
from shipsync.domain.ports import RemoteCallError

if TYPE_CHECKING:
    from shipsync.domain.model import OrderId, OrderRef
    from shipsync.domain.ports import CommercePlatform

    from .tracer import FlowTracer

TAG_FIELDS: tuple[str, ...] = ("id", "tags")


async def ensure_tag(
    platform: CommercePlatform,
    order_id: OrderId,
    tag_name: str | None,
    *,
    tracer: FlowTracer,
    enabled: bool = True,
    snapshot: OrderRef | None = None,
) -> TagOutcome:
    """Make sure ``tag_name`` is present on the order.

    Remote failures are reported as a ``failed`` outcome and never raised, so a
    broken tag update cannot block the fulfillment update that follows.
    ``snapshot`` may carry tags fetched earlier in the same invocation;
    otherwise the current tags are fetched.
    """

    tag = (tag_name or "").strip()
    if not enabled or not tag:
        tracer.add("Tagging skipped", {"enabled": enabled, "tagName": tag_name})
        return TagOutcome(status=TagStatus.SKIPPED, tag_name=tag or None)

    order = snapshot
    if order is None:
        try:
            order = await platform.get_order(order_id, fields=TAG_FIELDS)
        except RemoteCallError as exc:
            tracer.add("Error fetching order tags", {"error": str(exc)})
            return TagOutcome(status=TagStatus.FAILED, tag_name=tag, error=str(exc))

    if order.has_tag(tag):
        tracer.add("Tag already exists", {"tag": tag})
        return TagOutcome(status=TagStatus.EXISTS, tag_name=tag)

    new_tags = ",".join([*(existing.strip() for existing in order.tags), tag])
    try:
        await platform.update_order_tags(order_id, new_tags)
    except RemoteCallError as exc:
        tracer.add("Error adding tag", {"error": str(exc)})
        return TagOutcome(status=TagStatus.FAILED, tag_name=tag, error=str(exc))

    tracer.add("Tag added", {"tag": tag})
    return TagOutcome(status=TagStatus.SUCCESS, tag_name=tag)

from __future__ import annotations

import asyncio

from shipsync.domain.model import TagStatus
from shipsync.domain.reconciliation import FlowTracer, ensure_tag
from tests.helpers.commerce import FakeCommercePlatform, make_order


def test_tag_is_appended_to_existing_tags(
    platform: FakeCommercePlatform, tracer: FlowTracer
) -> None:
    platform.add_order(make_order(123, tags=["vip", " wholesale"]))

    outcome = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer))

    assert outcome.status is TagStatus.SUCCESS
    assert outcome.tag_name == "ofd"
    assert platform.calls[-1] == ("update_order_tags", (123, "vip,wholesale,ofd"))


def test_tagging_twice_is_idempotent(platform: FakeCommercePlatform, tracer: FlowTracer) -> None:
    platform.add_order(make_order(123))

    first = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer))
    second = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer))

    assert first.status is TagStatus.SUCCESS
    assert second.status is TagStatus.EXISTS
    assert platform.count("update_order_tags") == 1
    assert platform.orders["123"].tags == ("ofd",)


def test_existing_tag_matches_after_trimming(
    platform: FakeCommercePlatform, tracer: FlowTracer
) -> None:
    order = make_order(123, tags=[" ofd "])

    outcome = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer, snapshot=order))

    assert outcome.status is TagStatus.EXISTS
    assert platform.calls == []


def test_disabled_or_blank_tag_is_skipped(
    platform: FakeCommercePlatform, tracer: FlowTracer
) -> None:
    disabled = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer, enabled=False))
    blank = asyncio.run(ensure_tag(platform, 123, "  ", tracer=tracer))

    assert disabled.status is TagStatus.SKIPPED
    assert blank.status is TagStatus.SKIPPED
    assert platform.calls == []


def test_update_failure_is_reported_not_raised(
    platform: FakeCommercePlatform, tracer: FlowTracer
) -> None:
    platform.add_order(make_order(123))
    platform.fail("update_order_tags")

    outcome = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer))

    assert outcome.status is TagStatus.FAILED
    assert outcome.error == "update_order_tags failed"
    assert tracer.steps()[-1] == "Error adding tag"


def test_fetch_failure_is_reported_not_raised(
    platform: FakeCommercePlatform, tracer: FlowTracer
) -> None:
    platform.fail("get_order")

    outcome = asyncio.run(ensure_tag(platform, 123, "ofd", tracer=tracer))

    assert outcome.status is TagStatus.FAILED
    assert platform.count("update_order_tags") == 0

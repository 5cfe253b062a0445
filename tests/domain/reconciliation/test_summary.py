from __future__ import annotations

from datetime import UTC, datetime, timedelta

from shipsync.domain.model import (
    FulfillmentOutcome,
    FulfillmentUpdateStatus,
    TagOutcome,
    TagStatus,
    TargetStatus,
)
from shipsync.domain.reconciliation import FlowTracer, last_error, summarize


def test_tracer_clamps_backwards_clock() -> None:
    start = datetime(2024, 5, 1, 12, tzinfo=UTC)
    ticks = iter([start, start - timedelta(seconds=5), start + timedelta(seconds=1)])
    tracer = FlowTracer(clock=lambda: next(ticks))

    tracer.add("first")
    tracer.add("second", {"n": 2})
    tracer.add("third")

    assert [entry.timestamp for entry in tracer] == [start, start, start + timedelta(seconds=1)]
    assert tracer.to_list()[1] == {
        "timestamp": start.isoformat(),
        "step": "second",
        "detail": {"n": 2},
    }


def test_last_error_reads_most_recent_entry(tracer: FlowTracer) -> None:
    tracer.add("Error adding tag", {"error": "boom"})
    tracer.add("Tag added")
    tracer.add("Error creating fulfillment", {"error": "422 unprocessable"})

    assert last_error(tracer.entries) == "422 unprocessable"


def test_summary_fills_missing_failure_messages(tracer: FlowTracer) -> None:
    tracer.add("Error adding tag", {"error": "tag write rejected"})

    outcome = summarize(
        tag=TagOutcome(status=TagStatus.FAILED, tag_name="ofd"),
        fulfillment=FulfillmentOutcome(status=FulfillmentUpdateStatus.SKIPPED),
        entries=tracer.entries,
    )

    assert outcome.to_dict() == {
        "tag": {"status": "failed", "tagName": "ofd", "error": "tag write rejected"},
        "fulfillment": {"status": "skipped", "retries": 0},
    }
    assert outcome.steps == 1


def test_summary_keeps_explicit_error_and_flags(tracer: FlowTracer) -> None:
    outcome = summarize(
        tag=TagOutcome(status=TagStatus.SKIPPED),
        fulfillment=FulfillmentOutcome(
            status=FulfillmentUpdateStatus.FAILED,
            retries=3,
            target_status=TargetStatus.IN_TRANSIT,
            error="No open fulfillment found after retries",
        ),
        entries=tracer.entries,
        manual=True,
        badge="blue",
    )

    assert outcome.to_dict() == {
        "tag": {"status": "skipped"},
        "fulfillment": {
            "status": "failed",
            "retries": 3,
            "targetStatus": "in_transit",
            "error": "No open fulfillment found after retries",
        },
        "manual": True,
        "badge": "blue",
    }

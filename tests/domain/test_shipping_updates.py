from __future__ import annotations

import asyncio

from shipsync.domain.model import FulfillmentUpdateStatus, LogStatus, TagStatus
from shipsync.domain.reconciliation import ReconcilerOptions
from shipsync.domain.shipping_updates import (
    ForceStatusResult,
    WebhookResult,
    coerce_headers,
    force_fulfillment_status,
    process_shipping_update,
)
from tests.helpers.commerce import (
    FakeCommercePlatform,
    RecordingSleeper,
    make_order,
    open_fulfillment,
    open_fulfillment_order,
)
from tests.helpers.stores import FakeLogStore, FakeSettingsStore


def _process(
    payload: object,
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
    headers: dict[str, str] | None = None,
) -> WebhookResult:
    return asyncio.run(
        process_shipping_update(
            payload,
            headers,
            platform=platform,
            settings_store=settings_store,
            log_store=log_store,
            options=ReconcilerOptions(),
            sleep=sleeper,
        )
    )


def test_tagging_only_run(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, tags=["vip"]))
    settings_store.values.update({"tagging_enabled": True, "tag_name": "ofd"})

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.accepted is True
    assert result.status_code == 200
    assert result.outcome is not None
    assert result.outcome.to_dict() == {
        "tag": {"status": "success", "tagName": "ofd"},
        "fulfillment": {"status": "skipped", "retries": 0},
    }
    assert platform.orders["123"].tags == ("vip", "ofd")
    assert "Fulfillment update skipped" in [entry["step"] for entry in result.flow_log]
    assert log_store.last.status is LogStatus.SUCCESS
    assert log_store.last.message == "Processed Order 123"
    assert log_store.last.payload == {"id": 123}


def test_second_delivery_of_same_event_reports_existing_tag(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123))
    settings_store.values.update({"tagging_enabled": True, "tag_name": "ofd"})

    _process({"id": 123}, platform, settings_store, log_store, sleeper)
    second = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert second.outcome is not None
    assert second.outcome.tag.status is TagStatus.EXISTS
    assert platform.count("update_order_tags") == 1


def test_nested_payload_exhausts_attempts(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(789))
    settings_store.values.update({"fulfillment_update_enabled": True})

    result = _process(
        {"data": {"order": {"id": 789}}}, platform, settings_store, log_store, sleeper
    )

    assert result.accepted is True
    assert result.status_code == 200
    assert result.outcome is not None
    assert result.outcome.to_dict()["fulfillment"] == {
        "status": "failed",
        "retries": 3,
        "targetStatus": "in_transit",
        "error": "No open fulfillment found after retries",
    }
    assert platform.count("get_order") == 3
    assert sleeper.delays == [3.0, 3.0]
    assert log_store.last.status is LogStatus.WARNING
    assert log_store.last.message == (
        "Fulfillment update skipped - no open fulfillment found after retries"
    )


def test_fulfillment_update_succeeds_first_attempt(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))
    settings_store.values.update(
        {"fulfillment_update_enabled": True, "fulfillment_status": "out_for_delivery"}
    )

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.outcome is not None
    assert result.outcome.to_dict()["fulfillment"] == {
        "status": "success",
        "retries": 0,
        "targetStatus": "out_for_delivery",
    }
    assert platform.calls[-1] == ("create_fulfillment_event", (123, 555, "out_for_delivery"))
    assert sleeper.delays == []


def test_tag_failure_does_not_block_fulfillment_update(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))
    platform.fail("update_order_tags")
    settings_store.values.update(
        {"tagging_enabled": True, "tag_name": "ofd", "fulfillment_update_enabled": True}
    )

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.status_code == 200
    assert result.outcome is not None
    assert result.outcome.tag.status is TagStatus.FAILED
    assert result.outcome.fulfillment.status is FulfillmentUpdateStatus.SUCCESS
    assert platform.calls[-1] == ("create_fulfillment_event", (123, 555, "in_transit"))
    assert log_store.last.status is LogStatus.SUCCESS


def test_fulfillment_failure_does_not_block_tagging(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))
    platform.fail("create_fulfillment_event")
    platform.fail("list_fulfillment_orders")
    settings_store.values.update(
        {"tagging_enabled": True, "tag_name": "ofd", "fulfillment_update_enabled": True}
    )

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.status_code == 200
    assert result.outcome is not None
    assert result.outcome.tag.status is TagStatus.SUCCESS
    assert result.outcome.fulfillment.status is FulfillmentUpdateStatus.FAILED
    assert platform.orders["123"].tags == ("ofd",)
    assert log_store.last.status is LogStatus.WARNING

def test_disabled_system_makes_no_remote_calls(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    settings_store.values["system_enabled"] = False

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.accepted is True
    assert result.status_code == 200
    assert result.reason == "System disabled"
    assert platform.calls == []
    assert log_store.last.status is LogStatus.INFO


def test_missing_order_id_is_rejected(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    result = _process({"foo": "bar"}, platform, settings_store, log_store, sleeper)

    assert result.accepted is False
    assert result.status_code == 400
    assert result.reason == "No Order ID found"
    assert platform.calls == []
    assert log_store.last.status is LogStatus.ERROR
    assert log_store.last.flow_log is not None
    assert log_store.last.flow_log[-1]["step"] == "Error: No Order ID found"


def test_unavailable_settings_fall_back_to_defaults(
    platform: FakeCommercePlatform,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123))
    settings_store = FakeSettingsStore(unavailable=True)

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.status_code == 200
    assert result.outcome is not None
    assert result.outcome.tag.status is TagStatus.SKIPPED
    assert platform.operations() == ["get_order"]


def test_failed_order_fetch_is_an_operation_error(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    settings_store.values.update({"tagging_enabled": True, "tag_name": "ofd"})

    result = _process({"id": 404}, platform, settings_store, log_store, sleeper)

    assert result.accepted is False
    assert result.status_code == 500
    assert result.reason == "Error processing order"
    assert log_store.last.status is LogStatus.ERROR
    assert log_store.last.message.startswith("Operation failed:")


def test_test_email_filter_skips_other_customers(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, email="real@example.com"))
    settings_store.values.update(
        {"tagging_enabled": True, "tag_name": "ofd", "test_email": "qa@example.com"}
    )

    result = _process({"id": 123}, platform, settings_store, log_store, sleeper)

    assert result.status_code == 200
    assert result.reason == "Order does not match test email filter"
    assert platform.count("update_order_tags") == 0
    assert log_store.last.status is LogStatus.INFO


def test_payload_email_matches_test_filter(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123, email="real@example.com"))
    settings_store.values.update(
        {"tagging_enabled": True, "tag_name": "ofd", "test_email": "qa@example.com"}
    )

    result = _process(
        {"id": 123, "email": "QA@example.com"}, platform, settings_store, log_store, sleeper
    )

    assert result.outcome is not None
    assert result.outcome.tag.status is TagStatus.SUCCESS


def test_headers_are_traced(
    platform: FakeCommercePlatform,
    settings_store: FakeSettingsStore,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
) -> None:
    platform.add_order(make_order(123))

    result = _process(
        {"id": 123},
        platform,
        settings_store,
        log_store,
        sleeper,
        headers={"X-Shopify-Topic": "orders/updated", "X-Shopify-Shop-Domain": "demo"},
    )

    assert result.flow_log[0]["step"] == "Webhook received"
    assert result.flow_log[0]["detail"] == {"topic": "orders/updated", "shop": "demo"}


def test_coerce_headers_drops_non_mappings() -> None:
    assert coerce_headers(None) == {}
    assert coerce_headers({"A": 1, "B": None}) == {"A": "1"}


def _force(
    platform: FakeCommercePlatform,
    log_store: FakeLogStore,
    sleeper: RecordingSleeper,
    reference: str | None,
    status: str | None,
) -> ForceStatusResult:
    return asyncio.run(
        force_fulfillment_status(
            reference,
            status,
            platform=platform,
            log_store=log_store,
            sleep=sleeper,
        )
    )


def test_force_requires_reference_and_status(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    assert _force(platform, log_store, sleeper, None, "delivered").status_code == 400
    assert _force(platform, log_store, sleeper, "123", "").status_code == 400
    assert _force(platform, log_store, sleeper, "123", "teleported").status_code == 400
    assert platform.calls == []


def test_force_unknown_order_is_not_found(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    result = _force(platform, log_store, sleeper, "#9999", "delivered")

    assert result.success is False
    assert result.status_code == 404


def test_force_blue_badge_is_logged_as_manual(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    platform.add_order(make_order(123, name="#1001"))
    platform.fulfillment_orders = [open_fulfillment_order(777)]

    result = _force(platform, log_store, sleeper, "#1001", "out_for_delivery")

    assert result.success is True
    assert result.message == "Marked as out_for_delivery (Blue Badge)"
    assert result.outcome is not None
    summary = result.outcome.to_dict()
    assert summary["manual"] is True
    assert summary["badge"] == "blue"
    assert log_store.last.status is LogStatus.SUCCESS
    assert log_store.last.payload == {
        "manual": True,
        "orderId": "#1001",
        "status": "out_for_delivery",
    }


def test_force_without_target_is_rejected(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    platform.add_order(make_order(123))

    result = _force(platform, log_store, sleeper, "123", "delivered")

    assert result.success is False
    assert result.status_code == 400
    assert log_store.last.status is LogStatus.WARNING


def test_force_remote_failure_is_server_error(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    platform.add_order(make_order(123))
    platform.fulfillment_orders = [open_fulfillment_order(777)]
    platform.fail("create_fulfillment")

    result = _force(platform, log_store, sleeper, "123", "delivered")

    assert result.success is False
    assert result.status_code == 500
    assert result.outcome is not None
    assert result.outcome.fulfillment.error is not None


def test_force_fulfillment_order_lookup_failure_is_server_error(
    platform: FakeCommercePlatform, log_store: FakeLogStore, sleeper: RecordingSleeper
) -> None:
    platform.add_order(make_order(123))
    platform.fail("list_fulfillment_orders")

    result = _force(platform, log_store, sleeper, "123", "delivered")

    assert result.success is False
    assert result.status_code == 500
    assert result.message.startswith("Fulfillment order lookup failed")

#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from shipsync.app import (
    handle_force_status,
    handle_shipping_webhook,
    read_settings,
    recent_logs,
    update_settings,
)
from shipsync.config.logging import configure_logging
from shipsync.domain.model import SETTING_KEYS, TargetStatus
from shipsync.domain.shipping_updates import DEFAULT_TOPIC, SHOP_HEADER, TOPIC_HEADER

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from shipsync.domain.model import WebhookLogRecord


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile Shopify fulfillment statuses")
    subparsers = parser.add_subparsers(dest="command", required=True)

    webhook = subparsers.add_parser("webhook", help="Process one shipping webhook payload")
    webhook.add_argument(
        "--payload",
        type=str,
        default="-",
        help="Path to a JSON payload file, or '-' to read stdin (default: %(default)s)",
    )
    webhook.add_argument(
        "--topic",
        type=str,
        default=DEFAULT_TOPIC,
        help="Webhook topic header value (default: %(default)s)",
    )
    webhook.add_argument("--shop", type=str, help="Shop domain header value")

    force = subparsers.add_parser("force-status", help="Force a fulfillment status on an order")
    force.add_argument("order", type=str, help="Numeric order id or order name (e.g. #1001)")
    force.add_argument(
        "status",
        type=str,
        choices=[status.value for status in TargetStatus],
        help="Target fulfillment status",
    )
    force.add_argument("--tracking-number", type=str, help="Tracking number to attach")
    force.add_argument("--tracking-company", type=str, help="Carrier name to attach")

    settings = subparsers.add_parser("settings", help="Show or update engine settings")
    settings_sub = settings.add_subparsers(dest="action", required=True)
    settings_sub.add_parser("show", help="Print the effective settings")
    settings_set = settings_sub.add_parser("set", help="Update one or more settings")
    settings_set.add_argument(
        "values",
        nargs="+",
        metavar="KEY=VALUE",
        help=f"Settings to upsert; keys: {', '.join(SETTING_KEYS)}",
    )

    logs = subparsers.add_parser("logs", help="List recent webhook log records")
    logs.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Number of records to show (default: %(default)s)",
    )
    return parser.parse_args(list(argv))


def _read_payload(source: str) -> object:
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON payload: {exc}") from exc


def _parse_setting_pairs(pairs: Sequence[str]) -> dict[str, object]:
    values: dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        values[key.strip()] = value.strip()
    return values


def _format_log(record: WebhookLogRecord) -> str:
    date = record.date.isoformat() if record.date is not None else "-"
    return f"{date}  {record.status.value:<8} {record.message}"


def _run_command(args: argparse.Namespace) -> int:
    if args.command == "webhook":
        payload = _read_payload(args.payload)
        headers = {TOPIC_HEADER: args.topic}
        if args.shop:
            headers[SHOP_HEADER] = args.shop
        result = handle_shipping_webhook(payload, headers)
        body = {
            "accepted": result.accepted,
            "reason": result.reason,
            "summary": result.outcome.to_dict() if result.outcome is not None else None,
        }
        print(json.dumps(body, indent=2))
        if result.status_code >= 500:  # noqa: PLR2004
            return 1
        return 0 if result.accepted else 2

    if args.command == "force-status":
        result = handle_force_status(
            args.order,
            args.status,
            tracking_number=args.tracking_number,
            tracking_company=args.tracking_company,
        )
        print(result.message)
        if result.success:
            return 0
        return 1 if result.status_code >= 500 else 2  # noqa: PLR2004

    if args.command == "settings":
        if args.action == "set":
            policy = update_settings(_parse_setting_pairs(args.values))
        else:
            policy = read_settings()
        print(json.dumps(policy.as_settings(), indent=2))
        return 0

    for record in recent_logs(limit=args.limit):
        print(_format_log(record))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    try:
        parsed_args = _parse_args(argv or sys.argv[1:])
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        exit_code = _run_command(parsed_args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

"""Summary: Command-line interface for the Breed Industries backend.

Importance: Runs the server and gives operators maintenance commands.
Alternatives: Expose maintenance only through HTTP endpoints.
"""

from __future__ import annotations

import argparse
import json
import logging

from breedops.app import build_services
from breedops.config import AppConfig
from breedops.errors import ValidationError
from breedops.messages import NOTIFICATION_TYPES
from breedops.notify import NotificationClient
from breedops.quotes import calculate_bundle, calculate_selection, format_rand


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="Breed Industries backend CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP API")

    estimate = subparsers.add_parser("estimate", help="Price a package selection")
    estimate.add_argument("service_ids", nargs="*", type=str)
    estimate.add_argument("--bundle", type=str, default=None)

    list_notifications = subparsers.add_parser("list-notifications", help="List notifications")
    list_notifications.add_argument("--type", type=str, default=None, choices=NOTIFICATION_TYPES)
    list_notifications.add_argument("--status", type=str, default=None)
    list_notifications.add_argument("--limit", type=int, default=10)
    list_notifications.add_argument("--offset", type=int, default=0)

    subparsers.add_parser("stats", help="Show notification statistics")

    retry = subparsers.add_parser("retry-failed", help="Resend failed notifications")
    retry.add_argument("--max-retries", type=int, default=None)

    prune = subparsers.add_parser("prune", help="Delete old notification records")
    prune.add_argument("--days", type=int, default=None)

    notify = subparsers.add_parser("notify", help="Post a notification to the running API")
    notify.add_argument("type", type=str, choices=NOTIFICATION_TYPES)
    notify.add_argument(
        "--field", action="append", default=[], metavar="KEY=VALUE", help="Notification field"
    )
    notify.add_argument("--recipient", type=str, default=None)

    subparsers.add_parser("test-channel", help="Check the configured message channel")

    return parser


def parse_fields(pairs: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE arguments into notification data."""

    data: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        data[key.strip()] = value.strip()
    return data


def run_cli(argv: list[str] | None = None) -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: Drives server startup and log maintenance without a UI.
    Alternatives: Invoke services via the HTTP API.
    """

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "breedops.api:create_app_from_env",
            factory=True,
            host=config.api_host,
            port=config.api_port,
        )
        return

    if args.command == "estimate":
        try:
            if args.bundle:
                result = calculate_bundle(args.bundle)
            else:
                result = calculate_selection(args.service_ids)
        except ValidationError as exc:
            parser.error(str(exc))
        for entry in result.entries:
            print(f"{entry.id}: {entry.name} {format_rand(entry.price)}")
        print(f"Subtotal: {format_rand(result.subtotal)}")
        print(f"Discount: {format_rand(result.discount)}")
        print(f"Total: {format_rand(result.total)}")
        print(f"Timeframe: {result.estimated_timeframe}")
        return

    if args.command == "notify":
        client = NotificationClient(
            base_url=config.public_base_url,
            timeout=config.request_timeout_seconds,
            api_key=config.api_key,
        )
        result = client.send(args.type, parse_fields(args.field), args.recipient)
        print(json.dumps(result, indent=2))
        return

    services = build_services(config)

    if args.command == "list-notifications":
        records = services.notifications.list_notifications(
            args.type, args.status, args.limit, args.offset
        )
        for record in records:
            detail = record.message_id or record.error or ""
            print(
                f"{record.id}: {record.type} [{record.status}] "
                f"retries={record.retry_count} {detail} ({record.created_at.isoformat()})"
            )
        return

    if args.command == "stats":
        for key, value in services.notifications.stats().items():
            print(f"{key}: {value}")
        return

    if args.command == "retry-failed":
        summary = services.notifications.retry_failed(args.max_retries)
        print(
            f"Attempted {summary['attempted']}, "
            f"succeeded {summary['succeeded']}, failed {summary['failed']}."
        )
        return

    if args.command == "prune":
        deleted = services.notifications.prune(args.days)
        print(f"Deleted {deleted} notification records.")
        return

    if args.command == "test-channel":
        result = services.notifications.channel.check_connection()
        print(json.dumps(result, indent=2))
        return


if __name__ == "__main__":
    run_cli()

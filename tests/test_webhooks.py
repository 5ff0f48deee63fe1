"""Summary: Tests for webhook verification and parsing.

Importance: Receipts drive delivered/read tracking on the notification log.
Alternatives: Replay captured payloads by hand.
"""

from __future__ import annotations

from pathlib import Path

from breedops.models import DeliveryResult
from breedops.services import NotificationService
from breedops.storage.sqlite_store import SqliteStore
from breedops.webhooks import (
    WebhookService,
    parse_twilio_status_callback,
    parse_webhook_payload,
    verify_webhook,
)
from fakes import FakeChannel


def _cloud_payload(statuses: list[dict] | None = None, messages: list[dict] | None = None) -> dict:
    value: dict = {"messaging_product": "whatsapp"}
    if statuses is not None:
        value["statuses"] = statuses
    if messages is not None:
        value["messages"] = messages
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "1", "changes": [{"field": "messages", "value": value}]}],
    }


def test_verify_webhook_returns_challenge() -> None:
    assert verify_webhook("subscribe", "verify-me", "12345", "verify-me") == "12345"


def test_verify_webhook_rejects_bad_requests() -> None:
    """Summary: Verify wrong mode, wrong token, and missing config all fail.

    Importance: An unconfigured token must never accept a subscription.
    Alternatives: Accept any handshake in development.
    """

    assert verify_webhook("subscribe", "wrong", "12345", "verify-me") is None
    assert verify_webhook("unsubscribe", "verify-me", "12345", "verify-me") is None
    assert verify_webhook("subscribe", "", "12345", "") is None
    assert verify_webhook(None, None, None, "verify-me") is None


def test_parse_payload_collects_messages_and_statuses() -> None:
    payload = _cloud_payload(
        statuses=[
            {"id": "wamid.1", "status": "delivered", "timestamp": "1717221600", "recipient_id": "27821234567"},
            {"id": "wamid.2", "status": "failed", "errors": [{"title": "Message undeliverable"}]},
        ],
        messages=[
            {
                "from": "27821234567",
                "id": "wamid.in",
                "timestamp": "1717221600",
                "type": "text",
                "text": {"body": "Thanks!"},
            }
        ],
    )
    result = parse_webhook_payload(payload)
    assert result.processed is True
    assert result.messages[0].sender == "27821234567"
    assert result.messages[0].text == "Thanks!"
    assert [status.message_id for status in result.statuses] == ["wamid.1", "wamid.2"]
    assert result.statuses[0].recipient == "27821234567"
    assert result.statuses[1].error == "Message undeliverable"


def test_parse_payload_ignores_other_objects() -> None:
    assert parse_webhook_payload({"object": "page", "entry": []}).processed is False
    assert parse_webhook_payload(["not", "a", "dict"]).processed is False


def test_parse_payload_skips_other_fields() -> None:
    payload = {
        "object": "whatsapp_business_account",
        "entry": [{"changes": [{"field": "account_update", "value": {"statuses": [{"id": "x", "status": "read"}]}}]}],
    }
    result = parse_webhook_payload(payload)
    assert result.processed is True
    assert result.statuses == []


def test_twilio_undelivered_maps_to_failed() -> None:
    update = parse_twilio_status_callback(
        {"MessageSid": "SM1", "MessageStatus": "undelivered", "ErrorCode": "63016"}
    )
    assert update is not None
    assert update.status == "failed"
    assert update.error == "Error code 63016"


def test_twilio_intermediate_status_is_ignored() -> None:
    assert parse_twilio_status_callback({"MessageSid": "SM1", "MessageStatus": "queued"}) is None


def test_webhook_service_applies_receipts(tmp_path: Path) -> None:
    """Summary: Verify webhook receipts update the matching log record.

    Importance: Closes the loop between sending and delivery.
    Alternatives: Only log webhook bodies.
    """

    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    channel = FakeChannel([DeliveryResult(success=True, message_id="wamid.1")])
    notifications = NotificationService(store=store, channel=channel, default_recipient="0821234567")
    outcome = notifications.dispatch(
        "project_milestone",
        {"clientName": "Sipho", "projectName": "Website", "milestone": "Design approved"},
    )
    service = WebhookService(notifications=notifications)
    service.handle_cloud_payload(_cloud_payload(statuses=[{"id": "wamid.1", "status": "read"}]))
    assert notifications.get(outcome.log_id).status == "read"


def test_webhook_service_applies_gateway_callbacks(tmp_path: Path) -> None:
    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    channel = FakeChannel([DeliveryResult(success=True, message_id="SM42")])
    notifications = NotificationService(store=store, channel=channel, default_recipient="0821234567")
    outcome = notifications.dispatch(
        "quote_status_update", {"quoteId": "Q-2026-1111", "clientName": "Sipho", "status": "sent"}
    )
    service = WebhookService(notifications=notifications)
    service.handle_twilio_callback({"MessageSid": "SM42", "MessageStatus": "delivered"})
    assert notifications.get(outcome.log_id).status == "delivered"

"""Summary: Inbound webhook verification and payload parsing.

Importance: Receives provider delivery receipts and customer replies.
Alternatives: Poll provider APIs for message status.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from breedops.models import InboundMessage, StatusUpdate, WebhookParseResult
from breedops.services import NotificationService


logger = logging.getLogger(__name__)

CLOUD_API_OBJECT = "whatsapp_business_account"

# Gateway callback statuses mapped onto notification log statuses.
TWILIO_STATUS_MAP = {
    "sent": "sent",
    "delivered": "delivered",
    "read": "read",
    "failed": "failed",
    "undelivered": "failed",
}


def verify_webhook(
    mode: str | None, token: str | None, challenge: str | None, verify_token: str
) -> str | None:
    """Summary: Validate a webhook subscription handshake.

    Importance: Only the configured provider can register this endpoint.
    Alternatives: Accept any subscription request.
    """

    if mode != "subscribe" or not verify_token or token is None:
        return None
    if not hmac.compare_digest(token.encode("utf-8"), verify_token.encode("utf-8")):
        return None
    return challenge or ""


def parse_webhook_payload(payload: Any) -> WebhookParseResult:
    """Summary: Extract inbound messages and status updates from a Cloud API webhook.

    Importance: Normalizes the nested entry/changes envelope for the dispatch service.
    Alternatives: Store raw payloads and parse them later.
    """

    if not isinstance(payload, Mapping) or payload.get("object") != CLOUD_API_OBJECT:
        return WebhookParseResult(processed=False)
    messages: list[InboundMessage] = []
    statuses: list[StatusUpdate] = []
    for entry in _objects(payload.get("entry")):
        for change in _objects(entry.get("changes")):
            if change.get("field") != "messages":
                continue
            value = change.get("value")
            if not isinstance(value, Mapping):
                continue
            for message in _objects(value.get("messages")):
                text = message.get("text")
                messages.append(
                    InboundMessage(
                        sender=str(message.get("from", "")),
                        id=str(message.get("id", "")),
                        timestamp=str(message.get("timestamp", "")),
                        type=str(message.get("type", "")),
                        text=text.get("body") if isinstance(text, Mapping) else None,
                    )
                )
            for status in _objects(value.get("statuses")):
                if not status.get("id") or not status.get("status"):
                    continue
                statuses.append(
                    StatusUpdate(
                        message_id=str(status["id"]),
                        status=str(status["status"]),
                        timestamp=status.get("timestamp"),
                        recipient=status.get("recipient_id"),
                        error=_status_error(status),
                    )
                )
    return WebhookParseResult(processed=True, messages=messages, statuses=statuses)


def parse_twilio_status_callback(form: Mapping[str, str]) -> StatusUpdate | None:
    """Summary: Convert a gateway status callback into a StatusUpdate.

    Importance: Gives gateway-sent notifications the same delivered/read tracking.
    Alternatives: Ignore delivery receipts for the gateway channel.
    """

    message_id = form.get("MessageSid") or form.get("SmsSid")
    status = TWILIO_STATUS_MAP.get((form.get("MessageStatus") or "").lower())
    if not message_id or status is None:
        return None
    error = form.get("ErrorMessage") or None
    if status == "failed" and not error and form.get("ErrorCode"):
        error = f"Error code {form['ErrorCode']}"
    return StatusUpdate(
        message_id=message_id,
        status=status,
        recipient=form.get("To"),
        error=error,
    )


def _objects(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _status_error(status: Mapping[str, Any]) -> str | None:
    for error in _objects(status.get("errors")):
        detail = error.get("message") or error.get("title")
        if detail:
            return str(detail)
    return None


@dataclass(frozen=True)
class WebhookService:
    """Summary: Applies parsed webhook content to the notification log.

    Importance: Closes the loop between sending and delivery confirmation.
    Alternatives: Only log webhook payloads.
    """

    notifications: NotificationService

    def handle_cloud_payload(self, payload: Any) -> WebhookParseResult:
        """Summary: Process a Cloud API webhook body.

        Importance: Records receipts and surfaces customer replies in the log.
        Alternatives: Process only messages and drop statuses.
        """

        result = parse_webhook_payload(payload)
        if not result.processed:
            logger.info("Ignoring webhook for unsupported object %r.", _object_name(payload))
            return result
        for message in result.messages:
            logger.info(
                "Inbound WhatsApp %s message %s from %s.", message.type, message.id, message.sender
            )
        for status in result.statuses:
            self.notifications.apply_status_update(status)
        return result

    def handle_twilio_callback(self, form: Mapping[str, str]) -> StatusUpdate | None:
        update = parse_twilio_status_callback(form)
        if update is None:
            logger.info("Ignoring gateway callback with status %r.", form.get("MessageStatus"))
            return None
        self.notifications.apply_status_update(update)
        return update


def _object_name(payload: Any) -> Any:
    return payload.get("object") if isinstance(payload, Mapping) else None

"""Summary: Notification kinds, required fields, and message text.

Importance: One registry drives validation, templates, and free-text messages.
Alternatives: Hardcode message formats inside each channel adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping


NEW_CLIENT_REQUEST = "new_client_request"
QUOTE_STATUS_UPDATE = "quote_status_update"
PAYMENT_RECEIVED = "payment_received"
PROJECT_MILESTONE = "project_milestone"


@dataclass(frozen=True)
class NotificationTemplate:
    """Summary: Field contract and approved template name for a notification kind.

    Importance: Defines what a payload must carry before it is logged or sent.
    Alternatives: Validate payloads ad hoc in the dispatch service.
    """

    template_name: str
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...] = ()


NOTIFICATION_TEMPLATES: dict[str, NotificationTemplate] = {
    NEW_CLIENT_REQUEST: NotificationTemplate(
        template_name="new_client_request",
        required_fields=("name", "email", "phone", "service"),
        optional_fields=("message",),
    ),
    QUOTE_STATUS_UPDATE: NotificationTemplate(
        template_name="quote_status_update",
        required_fields=("quoteId", "clientName", "status"),
        optional_fields=("amount", "updatedAt"),
    ),
    PAYMENT_RECEIVED: NotificationTemplate(
        template_name="payment_received",
        required_fields=("clientName", "amount", "quoteId"),
        optional_fields=("paymentMethod", "date"),
    ),
    PROJECT_MILESTONE: NotificationTemplate(
        template_name="project_milestone",
        required_fields=("clientName", "projectName", "milestone"),
        optional_fields=("completionDate", "nextSteps"),
    ),
}

NOTIFICATION_TYPES = tuple(NOTIFICATION_TEMPLATES)


def local_time(now: datetime | None = None) -> datetime:
    """Summary: Convert a moment to the server's local clock for display.

    Importance: Stored defaults and message timestamps must show the same clock.
    Alternatives: Format UTC in some places and local time in others.
    """

    return (now or datetime.now(timezone.utc)).astimezone()


def missing_fields(notification_type: str, data: Mapping[str, Any]) -> list[str]:
    """Summary: List required fields that are absent or blank.

    Importance: Powers the 400 response for incomplete notification payloads.
    Alternatives: Use a Pydantic model per notification kind.
    """

    template = NOTIFICATION_TEMPLATES[notification_type]
    return [
        name
        for name in template.required_fields
        if data.get(name) is None or not str(data.get(name)).strip()
    ]


def apply_defaults(
    notification_type: str, data: Mapping[str, Any], now: datetime | None = None
) -> dict[str, Any]:
    """Summary: Fill optional fields that have a conventional default.

    Importance: Stored payloads and messages show the same values.
    Alternatives: Leave optional fields blank in messages.
    """

    moment = local_time(now)
    filled = dict(data)
    if notification_type == QUOTE_STATUS_UPDATE:
        filled.setdefault("updatedAt", moment.strftime("%Y-%m-%d %H:%M"))
    elif notification_type == PAYMENT_RECEIVED:
        filled.setdefault("date", moment.strftime("%Y-%m-%d"))
        if not filled.get("paymentMethod"):
            filled["paymentMethod"] = "Bank Transfer"
    elif notification_type == PROJECT_MILESTONE:
        filled.setdefault("completionDate", moment.strftime("%Y-%m-%d"))
        if not filled.get("nextSteps"):
            filled["nextSteps"] = "Continuing with next phase"
    return filled


def _lines(*lines: str | None) -> str:
    return "\n".join(line for line in lines if line is not None)


def _new_client_request(data: Mapping[str, Any], timestamp: str) -> str:
    return _lines(
        "🆕 New Client Request",
        "",
        f"Name: {data['name']}",
        f"Email: {data['email']}",
        f"Phone: {data['phone']}" if data.get("phone") else None,
        f"Service: {data['service']}",
        f"Message: {data['message']}" if data.get("message") else None,
        "",
        f"Time: {timestamp}",
    )


def _quote_status_update(data: Mapping[str, Any], timestamp: str) -> str:
    return _lines(
        "📋 Quote Update",
        "",
        f"Quote: {data['quoteId']}",
        f"Client: {data['clientName']}",
        f"Status: {data['status']}",
        f"Amount: R{data['amount']}" if data.get("amount") else None,
        "",
        f"Time: {timestamp}",
    )


def _payment_received(data: Mapping[str, Any], timestamp: str) -> str:
    return _lines(
        "💰 Payment Received!",
        "",
        f"Client: {data['clientName']}",
        f"Amount: R{data['amount']}",
        f"Quote: {data['quoteId']}",
        f"Method: {data.get('paymentMethod') or 'Bank Transfer'}",
        "",
        f"Time: {timestamp}",
    )


def _project_milestone(data: Mapping[str, Any], timestamp: str) -> str:
    return _lines(
        "🎯 Project Milestone",
        "",
        f"Client: {data['clientName']}",
        f"Project: {data['projectName']}",
        f"Milestone: {data['milestone']}",
        f"Next Steps: {data['nextSteps']}" if data.get("nextSteps") else None,
        "",
        f"Time: {timestamp}",
    )


MESSAGE_BUILDERS: dict[str, Callable[[Mapping[str, Any], str], str]] = {
    NEW_CLIENT_REQUEST: _new_client_request,
    QUOTE_STATUS_UPDATE: _quote_status_update,
    PAYMENT_RECEIVED: _payment_received,
    PROJECT_MILESTONE: _project_milestone,
}


def build_message(
    notification_type: str, data: Mapping[str, Any], now: datetime | None = None
) -> str:
    """Summary: Render the operator-facing text for a notification.

    Importance: Gives the gateway channel a fixed multi-line format per kind.
    Alternatives: Send the raw JSON payload as the message body.
    """

    builder = MESSAGE_BUILDERS.get(notification_type)
    if builder is None:
        raise RuntimeError(f"No message builder registered for {notification_type}")
    timestamp = local_time(now).strftime("%Y-%m-%d %H:%M")
    return builder(data, timestamp)


def build_template_components(
    notification_type: str, data: Mapping[str, Any]
) -> list[dict[str, Any]]:
    """Summary: Build Cloud API template body parameters for a notification.

    Importance: Approved templates take positional parameters in field order.
    Alternatives: Maintain a per-template component mapping by hand.
    """

    template = NOTIFICATION_TEMPLATES.get(notification_type)
    if template is None:
        raise RuntimeError(f"No template registered for {notification_type}")
    return [
        {
            "type": "body",
            "parameters": [
                {"type": "text", "text": str(data.get(name) or "N/A")}
                for name in template.required_fields
            ],
        }
    ]

"""Summary: Domain model dataclasses for quotes and notifications.

Importance: Defines the core entities shared across services, channels, and storage.
Alternatives: Use Pydantic models or ORM classes directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


NOTIFICATION_STATUSES = ("pending", "sent", "failed", "delivered", "read")
FAILURE_KINDS = ("configuration", "provider", "timeout", "internal")
PAYMENT_TERMS = ("Net 30", "Net 15", "Due on Receipt", "50% Upfront")


@dataclass(frozen=True)
class CatalogEntry:
    """Summary: Represents a purchasable service with a fixed price.

    Importance: Core unit for package estimates and quote line items.
    Alternatives: Store services in a database table editable by staff.
    """

    id: str
    name: str
    price: int
    description: str


@dataclass(frozen=True)
class CatalogCategory:
    """Summary: Named group of catalog entries.

    Importance: Mirrors the builder steps shown to customers.
    Alternatives: Tag entries with a category string instead.
    """

    id: str
    name: str
    entries: tuple[CatalogEntry, ...]


@dataclass(frozen=True)
class Bundle:
    """Summary: Fixed-price combination of catalog entries.

    Importance: Supports the quick-start packages offered on the website.
    Alternatives: Express bundles as discount rules over selections.
    """

    id: str
    name: str
    price: int
    components: tuple[str, ...]


@dataclass(frozen=True)
class SelectionEstimate:
    """Summary: Priced summary of a catalog selection.

    Importance: Gives customers an instant budget and delivery window.
    Alternatives: Return only the total and compute the rest client-side.
    """

    entries: tuple[CatalogEntry, ...]
    subtotal: int
    discount: int
    total: int
    estimated_timeframe: str
    bundle_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {"id": entry.id, "name": entry.name, "price": entry.price}
                for entry in self.entries
            ],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "estimatedTimeframe": self.estimated_timeframe,
            "bundleId": self.bundle_id,
        }


@dataclass(frozen=True)
class QuoteLineItem:
    """Summary: One priced row on a formal quote.

    Importance: Holds quantity and rate so line amounts stay reproducible.
    Alternatives: Store only precomputed amounts.
    """

    id: str
    name: str
    description: str
    quantity: int
    rate: float

    @property
    def amount(self) -> float:
        return self.quantity * self.rate


@dataclass(frozen=True)
class QuoteRequest:
    """Summary: Customer details and line items submitted from the quote form.

    Importance: Single validated input for totals, documents, and email.
    Alternatives: Pass the raw JSON payload through the pipeline.
    """

    customer_name: str
    customer_email: str
    project_name: str
    contact_person: str
    items: tuple[QuoteLineItem, ...]
    payment_terms: str = "Net 30"
    customer_company: str = ""
    customer_address: str = ""
    customer_phone: str = ""
    notes: str = ""


@dataclass(frozen=True)
class QuoteTotals:
    """Summary: Computed money values for a set of line items.

    Importance: Keeps discount rules in one place for every quote path.
    Alternatives: Compute totals inside the document template.
    """

    subtotal: float
    discount: float
    total: float


@dataclass(frozen=True)
class Quote:
    """Summary: A numbered, dated quote ready for rendering.

    Importance: Captures everything the document and email need.
    Alternatives: Rebuild numbering and dates inside the renderer.
    """

    number: str
    issue_date: date
    valid_until: date
    request: QuoteRequest
    totals: QuoteTotals


@dataclass(frozen=True)
class DeliveryResult:
    """Summary: Outcome of one channel delivery attempt.

    Importance: Normalizes provider responses for logging and retries.
    Alternatives: Return provider-specific response objects directly.
    """

    success: bool
    message_id: str | None = None
    error: str | None = None
    failure_kind: str | None = None

    @staticmethod
    def failed(error: str, failure_kind: str = "provider") -> "DeliveryResult":
        return DeliveryResult(success=False, error=error, failure_kind=failure_kind)


@dataclass(frozen=True)
class NotificationLogRecord:
    """Summary: Auditable record of one notification attempt.

    Importance: Tracks delivery outcome, provider id, and retries per notification.
    Alternatives: Log attempts only to application logs.
    """

    id: str
    type: str
    data: dict[str, Any]
    recipient: str
    status: str
    created_at: datetime
    updated_at: datetime
    message_id: str | None = None
    error: str | None = None
    failure_kind: str | None = None
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data,
            "recipient": self.recipient,
            "status": self.status,
            "messageId": self.message_id,
            "error": self.error,
            "failureKind": self.failure_kind,
            "retryCount": self.retry_count,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class DispatchOutcome:
    """Summary: Result returned to callers of the dispatch service.

    Importance: Reports success and the log id even when delivery fails.
    Alternatives: Raise on failure and lose the log reference.
    """

    success: bool
    log_id: str
    message_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "logId": self.log_id}
        if self.message_id:
            payload["messageId"] = self.message_id
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class InboundMessage:
    """Summary: Message a customer sent to the business number.

    Importance: Normalized shape for webhook consumers.
    Alternatives: Keep the nested provider payload.
    """

    sender: str
    id: str
    timestamp: str
    type: str
    text: str | None = None


@dataclass(frozen=True)
class StatusUpdate:
    """Summary: Provider-reported delivery status for a sent message.

    Importance: Drives delivered/read transitions on the notification log.
    Alternatives: Poll the provider for message status.
    """

    message_id: str
    status: str
    timestamp: str | None = None
    recipient: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class WebhookParseResult:
    """Parsed webhook payload split into inbound messages and status updates."""

    processed: bool
    messages: list[InboundMessage] = field(default_factory=list)
    statuses: list[StatusUpdate] = field(default_factory=list)

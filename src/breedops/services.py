"""Summary: Core application services for the Breed Industries backend.

Importance: Orchestrates notification dispatch, quote generation, and contact enquiries.
Alternatives: Build a full service layer with a dependency injection framework.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from breedops.channels import MessageChannel
from breedops.config import AppConfig
from breedops.documents import (
    COMPANY_NAME,
    DocumentRenderer,
    RenderOptions,
    build_quote_html,
    load_logo_data_uri,
    render_with_timeout,
)
from breedops.errors import MailDeliveryError, QuoteDeliveryError, ValidationError
from breedops.mail import Attachment, MailService, OutgoingEmail
from breedops.messages import (
    MESSAGE_BUILDERS,
    NEW_CLIENT_REQUEST,
    NOTIFICATION_TEMPLATES,
    apply_defaults,
    local_time,
    missing_fields,
)
from breedops.models import (
    DeliveryResult,
    DispatchOutcome,
    NotificationLogRecord,
    Quote,
    StatusUpdate,
)
from breedops.quotes import build_quote, format_rand, parse_quote_request
from breedops.storage.base import NotificationStore


logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Provider statuses only ever move a record forward through this order.
_PROGRESS = {"sent": 0, "delivered": 1, "read": 2}


def generate_notification_id(now: datetime | None = None) -> str:
    """Summary: Generate a log id from the current time and a random suffix.

    Importance: Ids sort roughly by creation time and never collide across requests.
    Alternatives: Use uuid4 or an autoincrement column.
    """

    moment = now or datetime.now(timezone.utc)
    millis = int(moment.timestamp() * 1000)
    digits = ""
    while millis:
        millis, remainder = divmod(millis, 36)
        digits = _BASE36[remainder] + digits
    return f"{digits or '0'}{secrets.token_hex(4)}"


@dataclass(frozen=True)
class NotificationService:
    """Summary: Validates, logs, and dispatches operator notifications.

    Importance: Every accepted event ends in a terminal status with an audit record.
    Alternatives: Fire-and-forget messages without a log.
    """

    store: NotificationStore
    channel: MessageChannel
    default_recipient: str = ""
    max_retries: int = 3
    retention_days: int = 30

    def dispatch(
        self,
        notification_type: str | None,
        data: Mapping[str, Any] | None,
        recipient: str | None = None,
        now: datetime | None = None,
    ) -> DispatchOutcome:
        """Summary: Validate an event, log it, and send it through the channel.

        Importance: Central entry point used by the API, the CLI, and other services.
        Alternatives: Let each caller talk to the channel directly.
        """

        if not notification_type or not data:
            raise ValidationError("Missing required fields: type and data")
        if notification_type not in NOTIFICATION_TEMPLATES:
            raise ValidationError(f"Unknown notification type: {notification_type}")
        if not isinstance(data, Mapping):
            raise ValidationError("Notification data must be an object")
        missing = missing_fields(notification_type, data)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        moment = now or datetime.now(timezone.utc)
        record = NotificationLogRecord(
            id=generate_notification_id(moment),
            type=notification_type,
            data=apply_defaults(notification_type, data, moment),
            recipient=(recipient or self.default_recipient or "").strip(),
            status="pending",
            created_at=moment,
            updated_at=moment,
        )
        self.store.put(record)
        result = self._deliver(record)
        return DispatchOutcome(
            success=result.success,
            log_id=record.id,
            message_id=result.message_id,
            error=result.error,
        )

    def list_notifications(
        self,
        notification_type: str | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[NotificationLogRecord]:
        """Summary: List logged notifications newest first.

        Importance: Powers the admin notification view.
        Alternatives: Query the database by hand.
        """

        return self.store.list(notification_type, status, limit=limit, offset=offset)

    def get(self, record_id: str) -> NotificationLogRecord | None:
        return self.store.get(record_id)

    def stats(self) -> dict[str, int]:
        """Summary: Count notifications per status.

        Importance: Gives operators a quick delivery health check.
        Alternatives: Compute counts in the admin frontend.
        """

        counts = self.store.count_by_status()
        return {"total": sum(counts.values()), **counts}

    def retry_failed(self, max_retries: int | None = None) -> dict[str, int]:
        """Summary: Resend failed notifications that have retries left.

        Importance: Recovers from transient provider outages without manual resends.
        Alternatives: Retry automatically inside the request that failed.
        """

        limit = self.max_retries if max_retries is None else max_retries
        summary = {"attempted": 0, "succeeded": 0, "failed": 0}
        for candidate in self.store.list_retry_candidates(limit):
            record = self.store.update(candidate.id, retry_count=candidate.retry_count + 1)
            summary["attempted"] += 1
            result = self._deliver(record)
            summary["succeeded" if result.success else "failed"] += 1
        logger.info(
            "Retried %s failed notifications: %s succeeded, %s failed.",
            summary["attempted"],
            summary["succeeded"],
            summary["failed"],
        )
        return summary

    def prune(self, older_than_days: int | None = None, now: datetime | None = None) -> int:
        """Summary: Delete log records older than the retention window.

        Importance: Keeps the notification log bounded.
        Alternatives: Let the table grow indefinitely.
        """

        days = self.retention_days if older_than_days is None else older_than_days
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        deleted = self.store.delete_created_before(cutoff)
        logger.info("Pruned %s notification records older than %s days.", deleted, days)
        return deleted

    def apply_status_update(self, update: StatusUpdate) -> NotificationLogRecord | None:
        """Summary: Fold a provider status report into the matching log record.

        Importance: Tracks delivered and read receipts after the initial send.
        Alternatives: Poll the provider for every sent message.
        """

        record = self.store.find_by_message_id(update.message_id)
        if record is None:
            logger.info("Ignoring status %s for unknown message %s.", update.status, update.message_id)
            return None
        if update.status == "failed":
            if record.status != "sent":
                return record
            logger.warning("Provider reported failure for notification %s.", record.id)
            return self.store.update(
                record.id,
                status="failed",
                error=update.error or "Delivery failed",
                failure_kind="provider",
            )
        if update.status in ("delivered", "read") and record.status in ("sent", "delivered"):
            if _PROGRESS[update.status] > _PROGRESS[record.status]:
                return self.store.update(record.id, status=update.status)
        return record

    def _deliver(self, record: NotificationLogRecord) -> DeliveryResult:
        if not record.recipient:
            result = DeliveryResult.failed("No recipient configured", "configuration")
        elif record.type not in MESSAGE_BUILDERS:
            logger.critical("No message builder registered for %s.", record.type)
            result = DeliveryResult.failed(
                f"No message builder registered for {record.type}", "internal"
            )
        else:
            try:
                result = self.channel.send_notification(record.type, record.data, record.recipient)
            except Exception as exc:
                logger.exception("Channel %s raised while sending %s.", self.channel.name, record.id)
                result = DeliveryResult.failed(str(exc) or exc.__class__.__name__, "internal")

        if result.success:
            self.store.update(
                record.id,
                status="sent",
                message_id=result.message_id,
                error=None,
                failure_kind=None,
            )
            logger.info("Notification %s sent as %s.", record.id, result.message_id)
            return result

        kind = result.failure_kind or "provider"
        self.store.update(record.id, status="failed", error=result.error, failure_kind=kind)
        if kind in ("configuration", "internal"):
            logger.error("Notification %s failed (%s): %s", record.id, kind, result.error)
        else:
            logger.warning("Notification %s failed (%s): %s", record.id, kind, result.error)
        return result


def _mirror_new_client_request(
    notifications: NotificationService | None, data: dict[str, Any]
) -> None:
    """Mirror a customer submission to the operator; never fails the caller."""

    if notifications is None:
        return
    try:
        outcome = notifications.dispatch(NEW_CLIENT_REQUEST, data)
    except ValidationError as exc:
        logger.warning("Skipped operator notification: %s", exc)
        return
    if not outcome.success:
        logger.warning("Operator notification %s not delivered: %s", outcome.log_id, outcome.error)


@dataclass(frozen=True)
class QuoteService:
    """Summary: Generates, renders, and emails formal quotes.

    Importance: Turns the quote form into a numbered PDF in the customer's inbox.
    Alternatives: Have staff build quotes by hand in a spreadsheet.
    """

    config: AppConfig
    mail: MailService
    renderer: DocumentRenderer
    notifications: NotificationService | None = None

    def generate_quote(self, payload: Mapping[str, Any], now: datetime | None = None) -> Quote:
        """Summary: Validate, price, render, and send a quote.

        Importance: Nothing is rendered or sent unless the request is valid and mail is configured.
        Alternatives: Queue quotes for asynchronous rendering.
        """

        request = parse_quote_request(payload)
        self.mail.ensure_configured()
        quote = build_quote(request, now)
        html = build_quote_html(quote, load_logo_data_uri(self.config.logo_path))
        document = render_with_timeout(
            self.renderer, html, RenderOptions(), self.config.render_timeout_seconds
        )
        email = OutgoingEmail(
            sender=self.config.contact_from_email,
            to=[request.customer_email],
            cc=[self.config.contact_to_email],
            reply_to=self.config.contact_to_email,
            subject=f"Your quote {quote.number} from {COMPANY_NAME}",
            text=_quote_email_text(quote),
            attachments=[
                Attachment(
                    filename=f"Breed_Industries_Quote_{quote.number}.pdf",
                    content=document,
                )
            ],
        )
        try:
            self.mail.send(email)
        except MailDeliveryError as exc:
            logger.error("Quote %s generated but not delivered: %s", quote.number, exc)
            raise QuoteDeliveryError(quote.number, str(exc)) from exc
        logger.info(
            "Quote %s sent (%s items, total %s).",
            quote.number,
            len(request.items),
            format_rand(quote.totals.total),
        )
        _mirror_new_client_request(
            self.notifications,
            {
                "name": request.contact_person,
                "email": request.customer_email,
                "phone": request.customer_phone or "Not provided",
                "service": f"Quote {quote.number}: {request.project_name}",
                "message": f"Quote total {format_rand(quote.totals.total)}",
            },
        )
        return quote


def _quote_email_text(quote: Quote) -> str:
    request = quote.request
    return "\n".join(
        [
            f"Dear {request.contact_person},",
            "",
            f"Thank you for considering {COMPANY_NAME} for {request.project_name}.",
            f"Please find attached quote {quote.number} for {format_rand(quote.totals.total)}.",
            f"This quote is valid until {quote.valid_until.strftime('%d %B %Y')}.",
            "",
            "Reply to this email or call us if you have any questions.",
            "",
            "Kind regards,",
            COMPANY_NAME,
        ]
    )


@dataclass(frozen=True)
class ContactService:
    """Summary: Forwards website contact enquiries to the agency inbox.

    Importance: Primary lead capture path for the website.
    Alternatives: Store enquiries and let staff poll an admin page.
    """

    config: AppConfig
    mail: MailService
    notifications: NotificationService | None = None

    def submit(self, payload: Mapping[str, Any]) -> str:
        """Summary: Validate and email a contact enquiry.

        Importance: Configuration is checked before the payload so outages are reported first.
        Alternatives: Validate first and fail later on the send.
        """

        self.mail.ensure_configured()
        name = str(payload.get("name") or "").strip()
        email = str(payload.get("email") or "").strip()
        message = str(payload.get("message") or "").strip()
        if not (name and email and message):
            raise ValidationError("Name, email, and message are required.")
        if any(character.isspace() for character in email):
            raise ValidationError("Email must be a single address.")
        phone = str(payload.get("phone") or "").strip()
        service = str(payload.get("service") or "").strip()

        lines = [f"Name: {name}", f"Email: {email}"]
        if phone:
            lines.append(f"Phone: {phone}")
        if service:
            lines.append(f"Service: {service}")
        lines.extend(["", message])
        message_id = self.mail.send(
            OutgoingEmail(
                sender=self.config.contact_from_email,
                to=[self.config.contact_to_email],
                reply_to=email,
                subject=f"New enquiry from {name}",
                text="\n".join(lines),
            )
        )
        _mirror_new_client_request(
            self.notifications,
            {
                "name": name,
                "email": email,
                "phone": phone or "Not provided",
                "service": service or "General enquiry",
                "message": message,
            },
        )
        return message_id


@dataclass(frozen=True)
class ChannelDiagnosticsService:
    """Summary: Checks gateway credentials and sends a test message.

    Importance: Confirms WhatsApp alerts work before relying on them.
    Alternatives: Wait for the first real notification to fail.
    """

    channel: MessageChannel
    recipient: str = ""

    def run(self, now: datetime | None = None) -> dict[str, Any]:
        connection = self.channel.check_connection()
        if not connection.get("success"):
            return {
                "success": False,
                "error": f"{self.channel.name} connection failed",
                "details": connection.get("error"),
            }
        timestamp = local_time(now).strftime("%Y-%m-%d %H:%M")
        body = (
            "🧪 WhatsApp Test\n\n"
            f"This is a test message from the {COMPANY_NAME} website.\n"
            "If you receive this, WhatsApp notifications are working!\n\n"
            f"Time: {timestamp}"
        )
        if self.recipient:
            result = self.channel.send(self.recipient, body)
        else:
            result = DeliveryResult.failed("No recipient configured", "configuration")
        return {
            "success": True,
            "connection": connection.get("details"),
            "message": {
                "success": result.success,
                "messageId": result.message_id,
                "error": result.error,
            },
        }

"""Summary: Tests for quote generation, contact enquiries, and diagnostics.

Importance: These are the customer-facing flows that email documents and alerts.
Alternatives: Exercise them only through the HTTP API.
"""

from __future__ import annotations

import re
import smtplib
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from breedops.config import AppConfig
from breedops.errors import ConfigurationError, QuoteDeliveryError, RenderError, ValidationError
from breedops.mail import MailService
from breedops.models import DeliveryResult
from breedops.services import (
    ChannelDiagnosticsService,
    ContactService,
    NotificationService,
    QuoteService,
)
from breedops.storage.sqlite_store import SqliteStore
from fakes import FakeChannel, FakeMailer, FakeRenderer


QUOTE_PAYLOAD = {
    "customerName": "Mokoena Holdings",
    "customerEmail": "thandi@mokoena.co.za",
    "customerPhone": "0821234567",
    "projectName": "Brand refresh",
    "contactPerson": "Thandi Mokoena",
    "paymentTerms": "50% Upfront",
    "items": [
        {"name": "Logo design", "quantity": 1, "rate": 1000},
        {"name": "Business cards", "quantity": 2, "rate": 500},
    ],
}


def _notifications(tmp_path: Path, channel: FakeChannel) -> NotificationService:
    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    return NotificationService(store=store, channel=channel, default_recipient="0821234567")


def _quote_service(
    config: AppConfig,
    mailer: FakeMailer,
    renderer: FakeRenderer,
    notifications: NotificationService | None = None,
) -> QuoteService:
    return QuoteService(
        config=config,
        mail=MailService(config=config, mailer=mailer),
        renderer=renderer,
        notifications=notifications,
    )


def test_generate_quote_emails_pdf_to_customer(
    tmp_path: Path,
    config_factory: Callable[..., AppConfig],
    fake_mailer: FakeMailer,
    fake_renderer: FakeRenderer,
    fake_channel: FakeChannel,
) -> None:
    """Summary: Verify a valid quote is rendered and emailed with the PDF attached.

    Importance: This is the main output of the quote generator.
    Alternatives: Assert only on the returned quote number.
    """

    notifications = _notifications(tmp_path, fake_channel)
    service = _quote_service(config_factory(), fake_mailer, fake_renderer, notifications)
    quote = service.generate_quote(QUOTE_PAYLOAD, datetime(2026, 3, 1))
    assert re.fullmatch(r"Q-2026-\d{4}", quote.number)
    assert quote.totals.total == 1800
    email = fake_mailer.sent[0]
    assert email.to == ["thandi@mokoena.co.za"]
    assert email.cc == ["info@thebreed.co.za"]
    assert email.attachments[0].filename == f"Breed_Industries_Quote_{quote.number}.pdf"
    assert email.attachments[0].content == fake_renderer.document
    assert "R1,800.00" in email.text
    mirrored = fake_channel.notifications[0]
    assert mirrored[0] == "new_client_request"
    assert quote.number in mirrored[1]["service"]


def test_invalid_quote_is_not_rendered(
    config_factory: Callable[..., AppConfig],
    fake_mailer: FakeMailer,
    fake_renderer: FakeRenderer,
) -> None:
    payload = dict(QUOTE_PAYLOAD, items=[{"name": "Logo", "quantity": 0, "rate": 100}])
    service = _quote_service(config_factory(), fake_mailer, fake_renderer)
    with pytest.raises(ValidationError):
        service.generate_quote(payload)
    assert fake_renderer.calls == []
    assert fake_mailer.sent == []


def test_quote_requires_mail_configuration_before_rendering(
    config_factory: Callable[..., AppConfig],
    fake_mailer: FakeMailer,
    fake_renderer: FakeRenderer,
) -> None:
    service = _quote_service(config_factory(smtp_password=""), fake_mailer, fake_renderer)
    with pytest.raises(ConfigurationError):
        service.generate_quote(QUOTE_PAYLOAD)
    assert fake_renderer.calls == []


def test_render_failure_sends_nothing(
    config_factory: Callable[..., AppConfig], fake_mailer: FakeMailer
) -> None:
    renderer = FakeRenderer(error=RuntimeError("renderer crashed"))
    service = _quote_service(config_factory(), fake_mailer, renderer)
    with pytest.raises(RenderError):
        service.generate_quote(QUOTE_PAYLOAD)
    assert fake_mailer.sent == []


def test_delivery_failure_reports_quote_number(
    config_factory: Callable[..., AppConfig], fake_renderer: FakeRenderer
) -> None:
    """Summary: Verify a failed send after rendering is reported as partial success.

    Importance: Staff can resend a generated quote by its number.
    Alternatives: Report a generic failure.
    """

    mailer = FakeMailer(error=smtplib.SMTPServerDisconnected("gone"))
    service = _quote_service(config_factory(), mailer, fake_renderer)
    with pytest.raises(QuoteDeliveryError) as excinfo:
        service.generate_quote(QUOTE_PAYLOAD)
    assert re.fullmatch(r"Q-\d{4}-\d{4}", excinfo.value.quote_number)
    assert len(fake_renderer.calls) == 1


def test_failed_mirror_does_not_fail_quote(
    tmp_path: Path,
    config_factory: Callable[..., AppConfig],
    fake_mailer: FakeMailer,
    fake_renderer: FakeRenderer,
) -> None:
    channel = FakeChannel([DeliveryResult.failed("down")])
    notifications = _notifications(tmp_path, channel)
    service = _quote_service(config_factory(), fake_mailer, fake_renderer, notifications)
    quote = service.generate_quote(QUOTE_PAYLOAD)
    assert quote.number
    assert notifications.stats()["failed"] == 1


def test_contact_checks_configuration_first(
    config_factory: Callable[..., AppConfig], fake_mailer: FakeMailer
) -> None:
    config = config_factory(smtp_password="")
    service = ContactService(config=config, mail=MailService(config=config, mailer=fake_mailer))
    with pytest.raises(ConfigurationError):
        service.submit({})


def test_contact_requires_name_email_and_message(
    config_factory: Callable[..., AppConfig], fake_mailer: FakeMailer
) -> None:
    config = config_factory()
    service = ContactService(config=config, mail=MailService(config=config, mailer=fake_mailer))
    with pytest.raises(ValidationError) as excinfo:
        service.submit({"name": "Sipho", "email": "sipho@example.com", "message": "  "})
    assert str(excinfo.value) == "Name, email, and message are required."


def test_contact_sends_enquiry_and_mirrors_notification(
    tmp_path: Path,
    config_factory: Callable[..., AppConfig],
    fake_mailer: FakeMailer,
    fake_channel: FakeChannel,
) -> None:
    config = config_factory()
    service = ContactService(
        config=config,
        mail=MailService(config=config, mailer=fake_mailer),
        notifications=_notifications(tmp_path, fake_channel),
    )
    service.submit(
        {"name": "Sipho", "email": "sipho@example.com", "message": "I need a logo", "service": "Logo"}
    )
    email = fake_mailer.sent[0]
    assert email.subject == "New enquiry from Sipho"
    assert email.reply_to == "sipho@example.com"
    assert email.to == ["info@thebreed.co.za"]
    assert email.attachments == []
    assert fake_channel.notifications[0][1]["service"] == "Logo"
    assert fake_channel.notifications[0][1]["phone"] == "Not provided"


def test_diagnostics_sends_test_message(fake_channel: FakeChannel) -> None:
    result = ChannelDiagnosticsService(channel=fake_channel, recipient="0821234567").run()
    assert result["success"] is True
    assert result["connection"] == {"channel": "fake"}
    assert result["message"]["success"] is True
    assert fake_channel.texts[0][1].startswith("🧪 WhatsApp Test")


def test_diagnostics_reports_connection_failure(fake_channel: FakeChannel) -> None:
    fake_channel.connection = {"success": False, "error": "Twilio client not initialized"}
    result = ChannelDiagnosticsService(channel=fake_channel, recipient="0821234567").run()
    assert result == {
        "success": False,
        "error": "fake connection failed",
        "details": "Twilio client not initialized",
    }
    assert fake_channel.texts == []

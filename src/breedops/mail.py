"""Summary: Outbound email through a transactional SMTP relay.

Importance: Delivers contact enquiries and quote documents.
Alternatives: Call a provider's REST API with an SDK.
"""

from __future__ import annotations

import logging
import smtplib
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid

from breedops.config import AppConfig
from breedops.errors import ConfigurationError, MailDeliveryError


logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Email service is not configured."


@dataclass(frozen=True)
class Attachment:
    """A file attached to an outgoing email."""

    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class OutgoingEmail:
    """Summary: Provider-neutral email message.

    Importance: Lets services build messages without knowing the transport.
    Alternatives: Build email.message objects in every service.
    """

    sender: str
    to: list[str]
    subject: str
    text: str
    html: str | None = None
    reply_to: str | None = None
    cc: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)


class Mailer(ABC):
    """Summary: Abstract interface for sending email.

    Importance: Allows swapping SMTP for a provider API or a test double.
    Alternatives: Use smtplib directly in each service.
    """

    @abstractmethod
    def send(self, email: OutgoingEmail) -> str:
        """Summary: Send a message and return the provider message id.

        Importance: The id is logged for support lookups.
        Alternatives: Return nothing and rely on provider dashboards.
        """


class SmtpMailer(Mailer):
    """Summary: Sends mail through an authenticated SMTP relay.

    Importance: Works with SendGrid's SMTP relay using an API key as password.
    Alternatives: Use SendGrid's HTTP API.
    """

    def __init__(self, host: str, port: int, user: str, password: str, timeout: float) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._timeout = timeout

    def send(self, email: OutgoingEmail) -> str:
        message = build_mime_message(email)
        smtp_class = smtplib.SMTP_SSL if self._port == 465 else smtplib.SMTP
        with smtp_class(self._host, self._port, timeout=self._timeout) as client:
            if self._port != 465:
                client.starttls()
            client.login(self._user, self._password)
            client.send_message(message)
        return message["Message-ID"]


def build_mime_message(email: OutgoingEmail) -> EmailMessage:
    """Summary: Convert an OutgoingEmail into a MIME message.

    Importance: Keeps header and attachment handling in one place.
    Alternatives: Use MIMEMultipart classes manually.
    """

    message = EmailMessage()
    message["From"] = _header(email.sender)
    message["To"] = _header(", ".join(email.to))
    if email.cc:
        message["Cc"] = _header(", ".join(email.cc))
    if email.reply_to:
        message["Reply-To"] = _header(email.reply_to)
    message["Subject"] = _header(email.subject)
    message["Message-ID"] = make_msgid(domain="thebreed.co.za")
    message.set_content(email.text)
    if email.html:
        message.add_alternative(email.html, subtype="html")
    for attachment in email.attachments:
        maintype, subtype = attachment.mime_type.split("/", 1)
        message.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )
    return message


def _header(value: str) -> str:
    # Header values may not contain line breaks.
    return " ".join(value.splitlines()).strip()


@dataclass(frozen=True)
class MailService:
    """Summary: Validates mail configuration and wraps provider failures.

    Importance: Distinguishes missing credentials from provider errors.
    Alternatives: Let smtplib exceptions reach the HTTP layer.
    """

    config: AppConfig
    mailer: Mailer

    def ensure_configured(self) -> None:
        """Summary: Fail fast when the mail API key is missing.

        Importance: Prevents rendering or validation work that cannot be delivered.
        Alternatives: Attempt the send and interpret the authentication error.
        """

        if not self.config.mail_configured:
            logger.error("Mail API key missing; refusing to send email.")
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

    def send(self, email: OutgoingEmail) -> str:
        """Summary: Send an email after checking configuration.

        Importance: Single choke point for mail failures and logging.
        Alternatives: Retry automatically on provider errors.
        """

        self.ensure_configured()
        try:
            message_id = self.mailer.send(email)
        except (socket.timeout, TimeoutError) as exc:
            logger.warning("Mail send timed out for subject %r.", email.subject)
            raise MailDeliveryError("timeout") from exc
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Mail provider rejected subject %r: %s", email.subject, exc)
            raise MailDeliveryError(f"Failed to send email: {exc}") from exc
        logger.info("Sent email %s (%s).", message_id, email.subject)
        return message_id

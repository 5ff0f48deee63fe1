"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the CLI and the API layer.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from breedops.channels import MessageChannel, build_channel, build_twilio_channel
from breedops.config import AppConfig
from breedops.documents import DocumentRenderer, WeasyPrintRenderer
from breedops.mail import Mailer, MailService, SmtpMailer
from breedops.services import (
    ChannelDiagnosticsService,
    ContactService,
    NotificationService,
    QuoteService,
)
from breedops.storage.sqlite_store import SqliteStore
from breedops.webhooks import WebhookService


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for the backend.

    Importance: Simplifies passing dependencies to the API and CLI layers.
    Alternatives: Use a dependency injection container.
    """

    config: AppConfig
    store: SqliteStore
    notifications: NotificationService
    quotes: QuoteService
    contact: ContactService
    webhooks: WebhookService
    diagnostics: ChannelDiagnosticsService


def build_services(
    config: AppConfig,
    channel: MessageChannel | None = None,
    mailer: Mailer | None = None,
    renderer: DocumentRenderer | None = None,
    diagnostics_channel: MessageChannel | None = None,
) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path, with seams for test doubles.
    Alternatives: Instantiate services directly within each entrypoint.
    """

    store = SqliteStore(config.db_path)
    store.initialize()
    notifications = NotificationService(
        store=store,
        channel=channel or build_channel(config),
        default_recipient=config.operator_whatsapp_number,
        max_retries=config.max_notification_retries,
        retention_days=config.notification_retention_days,
    )
    mail = MailService(
        config=config,
        mailer=mailer
        or SmtpMailer(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            timeout=config.request_timeout_seconds,
        ),
    )
    return AppServices(
        config=config,
        store=store,
        notifications=notifications,
        quotes=QuoteService(
            config=config,
            mail=mail,
            renderer=renderer or WeasyPrintRenderer(),
            notifications=notifications,
        ),
        contact=ContactService(config=config, mail=mail, notifications=notifications),
        webhooks=WebhookService(notifications=notifications),
        diagnostics=ChannelDiagnosticsService(
            channel=diagnostics_channel or build_twilio_channel(config),
            recipient=config.operator_whatsapp_number,
        ),
    )

"""Summary: Application configuration for the Breed Industries backend.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


MESSAGE_CHANNELS = ("cloud_api", "twilio", "log")


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for mail, messaging, and storage.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Read environment variables inside each adapter.
    """

    db_path: str
    api_host: str
    api_port: int
    api_key: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    contact_from_email: str
    contact_to_email: str
    message_channel: str
    whatsapp_access_token: str
    whatsapp_phone_number_id: str
    whatsapp_api_version: str
    whatsapp_api_base_url: str
    whatsapp_verify_token: str
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_whatsapp_number: str
    twilio_api_base_url: str
    operator_whatsapp_number: str
    public_base_url: str
    request_timeout_seconds: float = 10.0
    render_timeout_seconds: float = 30.0
    max_notification_retries: int = 3
    notification_retention_days: int = 30
    logo_path: str = ""

    @property
    def mail_configured(self) -> bool:
        """Summary: Report whether the mail API key is present.

        Importance: Lets callers fail fast before rendering or sending.
        Alternatives: Let the SMTP login fail and inspect the error.
        """

        return bool(self.smtp_password.strip())

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        message_channel = os.getenv("BREEDOPS_MESSAGE_CHANNEL", defaults["message_channel"])
        if message_channel not in MESSAGE_CHANNELS:
            raise ValueError(
                f"BREEDOPS_MESSAGE_CHANNEL must be one of {', '.join(MESSAGE_CHANNELS)}"
            )
        return AppConfig(
            db_path=os.getenv("BREEDOPS_DB_PATH", defaults["db_path"]),
            api_host=os.getenv("BREEDOPS_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("BREEDOPS_API_PORT", defaults["api_port"])),
            api_key=os.getenv("BREEDOPS_API_KEY", defaults["api_key"]),
            smtp_host=os.getenv("SENDGRID_SMTP_HOST", defaults["smtp_host"]),
            smtp_port=int(os.getenv("SENDGRID_SMTP_PORT", defaults["smtp_port"])),
            smtp_user=os.getenv("SENDGRID_SMTP_USER", defaults["smtp_user"]),
            smtp_password=os.getenv("SENDGRID_SMTP_PASS", defaults["smtp_password"]),
            contact_from_email=os.getenv("CONTACT_FROM_EMAIL", defaults["contact_from_email"]),
            contact_to_email=os.getenv("CONTACT_TO_EMAIL", defaults["contact_to_email"]),
            message_channel=message_channel,
            whatsapp_access_token=os.getenv(
                "WHATSAPP_ACCESS_TOKEN", defaults["whatsapp_access_token"]
            ),
            whatsapp_phone_number_id=os.getenv(
                "WHATSAPP_PHONE_NUMBER_ID", defaults["whatsapp_phone_number_id"]
            ),
            whatsapp_api_version=os.getenv(
                "WHATSAPP_API_VERSION", defaults["whatsapp_api_version"]
            ),
            whatsapp_api_base_url=os.getenv(
                "WHATSAPP_API_BASE_URL", defaults["whatsapp_api_base_url"]
            ),
            whatsapp_verify_token=os.getenv(
                "WHATSAPP_WEBHOOK_VERIFY_TOKEN", defaults["whatsapp_verify_token"]
            ),
            twilio_account_sid=os.getenv("TWILIO_ACCOUNT_SID", defaults["twilio_account_sid"]),
            twilio_auth_token=os.getenv("TWILIO_AUTH_TOKEN", defaults["twilio_auth_token"]),
            twilio_whatsapp_number=os.getenv(
                "TWILIO_WHATSAPP_NUMBER", defaults["twilio_whatsapp_number"]
            ),
            twilio_api_base_url=os.getenv("TWILIO_API_BASE_URL", defaults["twilio_api_base_url"]),
            operator_whatsapp_number=os.getenv(
                "YOUR_WHATSAPP_NUMBER", defaults["operator_whatsapp_number"]
            ),
            public_base_url=os.getenv("NEXT_PUBLIC_APP_URL", defaults["public_base_url"]),
            request_timeout_seconds=float(
                os.getenv("BREEDOPS_REQUEST_TIMEOUT_SECONDS", defaults["request_timeout_seconds"])
            ),
            render_timeout_seconds=float(
                os.getenv("BREEDOPS_RENDER_TIMEOUT_SECONDS", defaults["render_timeout_seconds"])
            ),
            max_notification_retries=int(
                os.getenv(
                    "BREEDOPS_MAX_NOTIFICATION_RETRIES", defaults["max_notification_retries"]
                )
            ),
            notification_retention_days=int(
                os.getenv(
                    "BREEDOPS_NOTIFICATION_RETENTION_DAYS",
                    defaults["notification_retention_days"],
                )
            ),
            logo_path=os.getenv("BREEDOPS_LOGO_PATH", defaults["logo_path"]),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())

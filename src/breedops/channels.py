"""Summary: WhatsApp message channel abstraction and implementations.

Importance: Lets the dispatch service deliver notifications without knowing the provider.
Alternatives: Call provider SDKs directly in the dispatch service.
"""

from __future__ import annotations

import base64
import http.client
import json
import logging
import secrets
import socket
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from typing import Any, Mapping

from breedops.config import AppConfig
from breedops.messages import NOTIFICATION_TEMPLATES, build_message, build_template_components
from breedops.models import DeliveryResult
from breedops.phone import normalize_phone


logger = logging.getLogger(__name__)


class ChannelRequestError(Exception):
    """Carries a classified provider failure out of the HTTP helpers."""

    def __init__(self, error: str, failure_kind: str = "provider") -> None:
        super().__init__(error)
        self.error = error
        self.failure_kind = failure_kind


class MessageChannel(ABC):
    """Summary: Abstract interface for delivering a short WhatsApp message.

    Importance: Keeps the dispatch flow identical across providers.
    Alternatives: Branch on provider names inside the dispatch service.
    """

    name = "abstract"

    @abstractmethod
    def send(self, to: str, body: str) -> DeliveryResult:
        """Summary: Send free text to a phone number.

        Importance: Lowest common denominator across providers.
        Alternatives: Require template messages everywhere.
        """

    def send_notification(
        self, notification_type: str, data: Mapping[str, Any], to: str
    ) -> DeliveryResult:
        """Summary: Deliver a typed notification to a recipient.

        Importance: Channels choose free text or templates per provider rules.
        Alternatives: Always render free text in the dispatch service.
        """

        return self.send(to, build_message(notification_type, data))

    def check_connection(self) -> dict[str, Any]:
        """Summary: Verify credentials against the provider.

        Importance: Backs the diagnostics endpoint used during setup.
        Alternatives: Send a real message as the only check.
        """

        return {"success": True, "details": {"channel": self.name}}


class CloudApiChannel(MessageChannel):
    """Summary: WhatsApp Business Cloud API channel using approved templates.

    Importance: Official API for business-initiated template messages.
    Alternatives: Use an unofficial WhatsApp Web bridge.
    """

    name = "cloud_api"

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v18.0",
        base_url: str = "https://graph.facebook.com",
        timeout: float = 10.0,
        language_code: str = "en",
    ) -> None:
        self._access_token = access_token
        self._phone_number_id = phone_number_id
        self._api_version = api_version
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._language_code = language_code

    def send(self, to: str, body: str) -> DeliveryResult:
        return self._post_message(
            {
                "messaging_product": "whatsapp",
                "to": normalize_phone(to),
                "type": "text",
                "text": {"body": body},
            }
        )

    def send_template(
        self,
        to: str,
        template_name: str,
        language_code: str,
        components: list[dict[str, Any]] | None = None,
    ) -> DeliveryResult:
        """Summary: Send an approved template message.

        Importance: Business-initiated conversations must use approved templates.
        Alternatives: Send free text and risk provider rejection.
        """

        template: dict[str, Any] = {"name": template_name, "language": {"code": language_code}}
        if components:
            template["components"] = components
        return self._post_message(
            {
                "messaging_product": "whatsapp",
                "to": normalize_phone(to),
                "type": "template",
                "template": template,
            }
        )

    def send_notification(
        self, notification_type: str, data: Mapping[str, Any], to: str
    ) -> DeliveryResult:
        template = NOTIFICATION_TEMPLATES[notification_type]
        return self.send_template(
            to,
            template.template_name,
            self._language_code,
            build_template_components(notification_type, data),
        )

    def check_connection(self) -> dict[str, Any]:
        if not self._configured():
            return {"success": False, "error": "WhatsApp credentials not configured"}
        request = urllib.request.Request(
            url=f"{self._base_url}/{self._api_version}/{self._phone_number_id}",
            headers={"Authorization": f"Bearer {self._access_token}"},
            method="GET",
        )
        try:
            payload = _open_json(request, self._timeout)
        except ChannelRequestError as exc:
            return {"success": False, "error": exc.error}
        return {
            "success": True,
            "details": {
                "phoneNumberId": payload.get("id"),
                "displayPhoneNumber": payload.get("display_phone_number"),
                "verifiedName": payload.get("verified_name"),
            },
        }

    def _configured(self) -> bool:
        return bool(self._access_token and self._phone_number_id)

    def _post_message(self, message: dict[str, Any]) -> DeliveryResult:
        if not self._configured():
            logger.error("WhatsApp Cloud API credentials not configured.")
            return DeliveryResult.failed("WhatsApp credentials not configured", "configuration")
        request = urllib.request.Request(
            url=f"{self._base_url}/{self._api_version}/{self._phone_number_id}/messages",
            data=json.dumps(message).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            payload = _open_json(request, self._timeout)
        except ChannelRequestError as exc:
            logger.warning("WhatsApp Cloud API send failed: %s", exc.error)
            return DeliveryResult.failed(exc.error, exc.failure_kind)
        messages = payload.get("messages") or []
        if not messages or not messages[0].get("id"):
            return DeliveryResult.failed("No message ID returned from WhatsApp API")
        return DeliveryResult(success=True, message_id=messages[0]["id"])


class TwilioChannel(MessageChannel):
    """Summary: Twilio messaging gateway channel for WhatsApp free text.

    Importance: Sends operator alerts without pre-approved templates via the sandbox.
    Alternatives: Use the twilio helper library.
    """

    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com",
        timeout: float = 10.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def send(self, to: str, body: str) -> DeliveryResult:
        if not (self._account_sid and self._auth_token):
            logger.error("Twilio credentials not configured.")
            return DeliveryResult.failed("Twilio not configured", "configuration")
        if not self._from_number:
            logger.error("Twilio WhatsApp sender number not configured.")
            return DeliveryResult.failed("Twilio WhatsApp number not configured", "configuration")
        form = urllib.parse.urlencode(
            {
                "To": whatsapp_address(to),
                "From": whatsapp_address(self._from_number),
                "Body": body,
            }
        ).encode("utf-8")
        request = urllib.request.Request(
            url=f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}/Messages.json",
            data=form,
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            method="POST",
        )
        try:
            payload = _open_json(request, self._timeout)
        except ChannelRequestError as exc:
            logger.warning("Twilio WhatsApp send failed: %s", exc.error)
            return DeliveryResult.failed(exc.error, exc.failure_kind)
        sid = payload.get("sid")
        if not sid:
            return DeliveryResult.failed("No message SID returned from Twilio")
        return DeliveryResult(success=True, message_id=sid)

    def check_connection(self) -> dict[str, Any]:
        if not (self._account_sid and self._auth_token):
            return {"success": False, "error": "Twilio client not initialized"}
        request = urllib.request.Request(
            url=f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}.json",
            headers={"Authorization": self._auth_header()},
            method="GET",
        )
        try:
            payload = _open_json(request, self._timeout)
        except ChannelRequestError as exc:
            return {"success": False, "error": exc.error}
        return {
            "success": True,
            "details": {
                "accountSid": payload.get("sid"),
                "friendlyName": payload.get("friendly_name"),
                "status": payload.get("status"),
            },
        }

    def _auth_header(self) -> str:
        token = f"{self._account_sid}:{self._auth_token}".encode("utf-8")
        return f"Basic {base64.b64encode(token).decode('ascii')}"


class LogChannel(MessageChannel):
    """Summary: Development channel that writes messages to the log.

    Importance: Exercises the full dispatch flow without provider credentials.
    Alternatives: Point a real channel at a sandbox account.
    """

    name = "log"

    def send(self, to: str, body: str) -> DeliveryResult:
        message_id = f"local-{secrets.token_hex(6)}"
        logger.info("WhatsApp (log channel) to %s [%s]:\n%s", normalize_phone(to), message_id, body)
        return DeliveryResult(success=True, message_id=message_id)


def whatsapp_address(phone_number: str) -> str:
    """Format a phone number in the gateway's whatsapp: address scheme."""

    return f"whatsapp:+{normalize_phone(phone_number)}"


def build_channel(config: AppConfig) -> MessageChannel:
    """Summary: Construct the configured message channel.

    Importance: Channel choice is explicit configuration resolved once at startup.
    Alternatives: Guess the channel from whichever credentials are present.
    """

    if config.message_channel == "cloud_api":
        return CloudApiChannel(
            access_token=config.whatsapp_access_token,
            phone_number_id=config.whatsapp_phone_number_id,
            api_version=config.whatsapp_api_version,
            base_url=config.whatsapp_api_base_url,
            timeout=config.request_timeout_seconds,
        )
    if config.message_channel == "twilio":
        return build_twilio_channel(config)
    if config.message_channel == "log":
        return LogChannel()
    raise ValueError(f"Unknown message channel: {config.message_channel}")


def build_twilio_channel(config: AppConfig) -> TwilioChannel:
    """Build the gateway channel from configuration."""

    return TwilioChannel(
        account_sid=config.twilio_account_sid,
        auth_token=config.twilio_auth_token,
        from_number=config.twilio_whatsapp_number,
        base_url=config.twilio_api_base_url,
        timeout=config.request_timeout_seconds,
    )


def _open_json(request: urllib.request.Request, timeout: float) -> dict[str, Any]:
    """Summary: Execute a provider request and decode its JSON body.

    Importance: Classifies timeouts, HTTP errors, and network errors uniformly.
    Alternatives: Let urllib exceptions propagate to each caller.
    """

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        raise ChannelRequestError(_http_error_message(exc)) from exc
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, (socket.timeout, TimeoutError)):
            raise ChannelRequestError("timeout", "timeout") from exc
        raise ChannelRequestError(f"Connection failed: {exc.reason}") from exc
    except (socket.timeout, TimeoutError) as exc:
        raise ChannelRequestError("timeout", "timeout") from exc
    except (OSError, http.client.HTTPException) as exc:
        detail = str(exc) or exc.__class__.__name__
        raise ChannelRequestError(f"Connection failed: {detail}") from exc
    try:
        payload = json.loads(raw) if raw else {}
    except json.JSONDecodeError as exc:
        raise ChannelRequestError("Provider returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise ChannelRequestError("Provider returned an unexpected response")
    return payload


def _http_error_message(exc: urllib.error.HTTPError) -> str:
    try:
        details = json.loads(exc.read().decode("utf-8", errors="replace"))
    except (ValueError, OSError):
        details = {}
    if isinstance(details, dict):
        error = details.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        # Twilio puts the message at the top level.
        if details.get("message"):
            return str(details["message"])
    return f"HTTP {exc.code}: {exc.reason}"

"""Summary: Client for posting notifications to a running backend.

Importance: Lets scripts and other services raise operator alerts over HTTP.
Alternatives: Import the dispatch service directly in every caller.
"""

from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from breedops.messages import (
    NEW_CLIENT_REQUEST,
    PAYMENT_RECEIVED,
    PROJECT_MILESTONE,
    QUOTE_STATUS_UPDATE,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationClient:
    """Summary: Posts notification events to the /notifications endpoint.

    Importance: Transport failures come back as results instead of exceptions.
    Alternatives: Use an HTTP client library with retries.
    """

    base_url: str
    timeout: float = 10.0
    api_key: str = ""

    def send(
        self, notification_type: str, data: dict[str, Any], recipient: str | None = None
    ) -> dict[str, Any]:
        """Summary: Send one notification event to the backend.

        Importance: Single code path for every notification helper.
        Alternatives: Build requests inline at each call site.
        """

        body: dict[str, Any] = {"type": notification_type, "data": data}
        if recipient:
            body["recipient"] = recipient
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        request = urllib.request.Request(
            url=f"{self.base_url.rstrip('/')}/notifications",
            data=json.dumps(body).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                return json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            try:
                details = json.loads(exc.read().decode("utf-8"))
            except (ValueError, OSError):
                details = {}
            error = details.get("error") if isinstance(details, dict) else None
            logger.warning("Notification request rejected with HTTP %s.", exc.code)
            return {"success": False, "error": error or f"HTTP {exc.code}: {exc.reason}"}
        except (socket.timeout, TimeoutError):
            logger.warning("Notification request timed out.")
            return {"success": False, "error": "timeout"}
        except urllib.error.URLError as exc:
            logger.warning("Notification request failed: %s", exc.reason)
            return {"success": False, "error": str(exc.reason)}
        except ValueError:
            return {"success": False, "error": "Invalid response from notification endpoint"}

    def new_client_request(
        self, name: str, email: str, phone: str, service: str, message: str | None = None
    ) -> dict[str, Any]:
        data = {"name": name, "email": email, "phone": phone, "service": service}
        if message:
            data["message"] = message
        return self.send(NEW_CLIENT_REQUEST, data)

    def quote_status_update(
        self, quote_id: str, client_name: str, status: str, amount: float | None = None
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"quoteId": quote_id, "clientName": client_name, "status": status}
        if amount is not None:
            data["amount"] = amount
        return self.send(QUOTE_STATUS_UPDATE, data)

    def payment_received(
        self,
        client_name: str,
        amount: float,
        quote_id: str,
        payment_method: str = "Bank Transfer",
    ) -> dict[str, Any]:
        return self.send(
            PAYMENT_RECEIVED,
            {
                "clientName": client_name,
                "amount": amount,
                "quoteId": quote_id,
                "paymentMethod": payment_method,
            },
        )

    def project_milestone(
        self,
        client_name: str,
        project_name: str,
        milestone: str,
        next_steps: str | None = None,
    ) -> dict[str, Any]:
        data = {"clientName": client_name, "projectName": project_name, "milestone": milestone}
        if next_steps:
            data["nextSteps"] = next_steps
        return self.send(PROJECT_MILESTONE, data)

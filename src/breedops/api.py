"""Summary: FastAPI application for the Breed Industries backend.

Importance: Exposes quote, contact, notification, and webhook endpoints to the website.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import parse_qs

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from breedops.app import AppServices, build_services
from breedops.catalog import catalog_payload
from breedops.config import AppConfig
from breedops.errors import (
    ConfigurationError,
    MailDeliveryError,
    QuoteDeliveryError,
    RenderError,
    ValidationError,
)
from breedops.quotes import calculate_bundle, calculate_selection
from breedops.webhooks import verify_webhook


logger = logging.getLogger(__name__)

CONTACT_FAILURE_MESSAGE = "Unable to send your message right now. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal server error"


class EstimateRequest(BaseModel):
    """Summary: Request payload for package estimates.

    Importance: Accepts either a custom selection or a quick-start bundle.
    Alternatives: Use separate endpoints for bundles and selections.
    """

    model_config = ConfigDict(populate_by_name=True)

    service_ids: list[str] = Field(default_factory=list, alias="serviceIds")
    bundle_id: str | None = Field(default=None, alias="bundleId")


class ContactRequest(BaseModel):
    """Summary: Request payload for the website contact form.

    Importance: Optional fields let the service report missing values itself.
    Alternatives: Mark fields required and return framework validation errors.
    """

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    service: str | None = None
    message: str | None = None


class QuoteItemBody(BaseModel):
    """Line item as submitted by the quote form."""

    id: str | None = None
    name: str | None = None
    description: str | None = None
    quantity: float | None = 1
    rate: float | None = None


class QuoteRequestBody(BaseModel):
    """Summary: Request payload for formal quote generation.

    Importance: Keeps the camelCase form contract explicit for API clients.
    Alternatives: Accept an untyped dictionary.
    """

    model_config = ConfigDict(populate_by_name=True)

    customer_name: str | None = Field(default=None, alias="customerName")
    customer_company: str | None = Field(default=None, alias="customerCompany")
    customer_address: str | None = Field(default=None, alias="customerAddress")
    customer_email: str | None = Field(default=None, alias="customerEmail")
    customer_phone: str | None = Field(default=None, alias="customerPhone")
    project_name: str | None = Field(default=None, alias="projectName")
    contact_person: str | None = Field(default=None, alias="contactPerson")
    payment_terms: str | None = Field(default=None, alias="paymentTerms")
    items: list[QuoteItemBody] = Field(default_factory=list)
    notes: str | None = None


class NotificationRequest(BaseModel):
    """Summary: Request payload for dispatching a notification.

    Importance: Mirrors the server-to-server notify contract.
    Alternatives: One endpoint per notification kind.
    """

    type: str | None = None
    data: dict[str, Any] | None = None
    recipient: str | None = None


def create_app(config: AppConfig, services: AppServices | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to the backend services.

    Importance: Ensures the API layer shares the same configuration and storage.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="Breed Industries API", version="0.1.0")
    services = services or build_services(config)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": f"Invalid request: {message}"})

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Keeps the notification log private on public deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok"}

    @app.get("/catalog")
    def catalog() -> dict[str, Any]:
        return catalog_payload()

    @app.post("/quotes/estimate")
    def estimate(payload: EstimateRequest) -> dict[str, Any]:
        """Summary: Price a package builder selection or bundle.

        Importance: Keeps prices and discounts authoritative on the server.
        Alternatives: Compute estimates in the browser.
        """

        try:
            if payload.bundle_id:
                result = calculate_bundle(payload.bundle_id)
            else:
                result = calculate_selection(payload.service_ids)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return result.to_dict()

    @app.post("/contact")
    def contact(payload: ContactRequest) -> dict[str, Any]:
        """Summary: Forward a contact enquiry to the agency inbox.

        Importance: Primary lead capture endpoint for the website.
        Alternatives: Use a third-party form service.
        """

        try:
            services.contact.submit(payload.model_dump())
        except ConfigurationError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except MailDeliveryError as exc:
            logger.error("Contact enquiry not delivered: %s", exc)
            raise HTTPException(status_code=500, detail=CONTACT_FAILURE_MESSAGE) from exc
        except Exception as exc:
            logger.exception("Unexpected error while handling a contact enquiry.")
            raise HTTPException(status_code=500, detail=CONTACT_FAILURE_MESSAGE) from exc
        return {"success": True}

    @app.post("/generate-quote")
    def generate_quote(payload: QuoteRequestBody) -> Any:
        """Summary: Generate, render, and email a formal quote.

        Importance: Reports render failures and delivery failures distinctly.
        Alternatives: Return a generic failure for every error.
        """

        body = payload.model_dump(by_alias=True)
        try:
            quote = services.quotes.generate_quote(body)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ConfigurationError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except RenderError as exc:
            logger.error("Quote document rendering failed: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"error": str(exc), "documentGenerated": False},
            )
        except QuoteDeliveryError as exc:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Quote generated but the email could not be sent.",
                    "details": str(exc),
                    "quoteNumber": exc.quote_number,
                    "documentGenerated": True,
                },
            )
        except Exception as exc:
            logger.exception("Unexpected error while generating a quote.")
            raise HTTPException(status_code=500, detail="Failed to generate quote") from exc
        return {
            "success": True,
            "message": "Quote generated and sent successfully.",
            "quoteNumber": quote.number,
        }

    @app.post("/notifications")
    def send_notification(payload: NotificationRequest) -> dict[str, Any]:
        """Summary: Validate, log, and dispatch an operator notification.

        Importance: Server-to-server entry point for WhatsApp alerts.
        Alternatives: Call the channel directly from each feature.
        """

        try:
            outcome = services.notifications.dispatch(
                payload.type, payload.data, payload.recipient
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Notification dispatch failed unexpectedly.")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR_MESSAGE) from exc
        return outcome.to_dict()

    @app.get("/notifications", dependencies=[Depends(require_api_key)])
    def list_notifications(
        type: str | None = None,
        status: str | None = None,
        limit: int = Query(default=10, ge=1, le=200),
        offset: int = Query(default=0, ge=0),
    ) -> dict[str, Any]:
        """Summary: List logged notifications newest first.

        Importance: Backs the admin notifications page.
        Alternatives: Inspect the SQLite file by hand.
        """

        try:
            records = services.notifications.list_notifications(type, status, limit, offset)
        except Exception as exc:
            logger.exception("Listing notifications failed.")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR_MESSAGE) from exc
        return {"notifications": [record.to_dict() for record in records]}

    @app.get("/notifications/stats", dependencies=[Depends(require_api_key)])
    def notification_stats() -> dict[str, int]:
        return services.notifications.stats()

    @app.post("/notifications/retry", dependencies=[Depends(require_api_key)])
    def retry_notifications(
        max_retries: int | None = Query(default=None, ge=1, alias="maxRetries"),
    ) -> dict[str, int]:
        """Summary: Resend failed notifications that have retries left.

        Importance: Lets a scheduler recover from provider outages.
        Alternatives: Resend manually from the admin page.
        """

        return services.notifications.retry_failed(max_retries)

    @app.post("/notifications/prune", dependencies=[Depends(require_api_key)])
    def prune_notifications(
        older_than_days: int | None = Query(default=None, ge=0, alias="olderThanDays"),
    ) -> dict[str, int]:
        return {"deleted": services.notifications.prune(older_than_days)}

    @app.get("/notifications/{record_id}", dependencies=[Depends(require_api_key)])
    def get_notification(record_id: str) -> dict[str, Any]:
        record = services.notifications.get(record_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Notification not found")
        return record.to_dict()

    @app.get("/whatsapp/webhook")
    def whatsapp_verify(
        mode: str | None = Query(default=None, alias="hub.mode"),
        token: str | None = Query(default=None, alias="hub.verify_token"),
        challenge: str | None = Query(default=None, alias="hub.challenge"),
    ) -> Any:
        """Summary: Answer the webhook subscription handshake.

        Importance: The provider only delivers events after a successful handshake.
        Alternatives: Register webhooks manually without verification.
        """

        response = verify_webhook(mode, token, challenge, config.whatsapp_verify_token)
        if response is None:
            logger.warning("Rejected webhook verification attempt.")
            raise HTTPException(status_code=403, detail="Invalid verification")
        return PlainTextResponse(response)

    @app.post("/whatsapp/webhook")
    async def whatsapp_webhook(request: Request) -> dict[str, str]:
        """Summary: Receive Cloud API messages and status updates.

        Importance: Applies delivered and read receipts to the notification log.
        Alternatives: Ignore webhook deliveries.
        """

        try:
            payload = json.loads(await request.body())
            services.webhooks.handle_cloud_payload(payload)
        except Exception as exc:
            logger.exception("WhatsApp webhook processing failed.")
            raise HTTPException(status_code=500, detail="Webhook processing failed") from exc
        return {"status": "received"}

    @app.post("/twilio/status")
    async def twilio_status(request: Request) -> dict[str, str]:
        """Summary: Receive gateway delivery status callbacks.

        Importance: Gives gateway-sent notifications delivery tracking.
        Alternatives: Poll the gateway's message resource.
        """

        body = (await request.body()).decode("utf-8")
        form = {key: values[-1] for key, values in parse_qs(body).items()}
        services.webhooks.handle_twilio_callback(form)
        return {"status": "received"}

    @app.get("/test-twilio")
    def test_twilio() -> dict[str, Any]:
        """Summary: Check gateway credentials and send a test message.

        Importance: Confirms operator alerts work during setup.
        Alternatives: Send a real notification and check the phone.
        """

        try:
            return services.diagnostics.run()
        except Exception as exc:
            logger.exception("Gateway diagnostics failed.")
            return {"success": False, "error": str(exc) or "Test failed"}

    return app


def create_app_from_env() -> FastAPI:
    """Summary: Build the app from environment configuration.

    Importance: Entry point for uvicorn's factory mode.
    Alternatives: Create the app at import time.
    """

    return create_app(AppConfig.from_env())

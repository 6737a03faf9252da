"""Webhook HTTP handlers: FastAPI routes for registration, delivery and reads.

Routes:
- POST /register-webhook  register (or re-register) a webhook id and secret
- POST /webhook           signed delivery; headers carry signature, event, id
- GET  /events/{id}       admitted events for one webhook
- GET  /webhooks          registered ids with event counts

Security contract:
- Every rejection kind maps to 400; only the ``error`` reason differs
- Secrets are never returned or logged
- Signatures are logged truncated to their first 10 characters
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from webhook_receiver.webhooks.exceptions import InvalidArgumentError
from webhook_receiver.webhooks.models import AdmissionResult, Delivery
from webhook_receiver.webhooks.registry import WebhookRegistry
from webhook_receiver.webhooks.verification import DeliveryVerifier, parse_payload

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-webhook-signature"
EVENT_HEADER = "x-webhook-event"
WEBHOOK_ID_HEADER = "x-webhook-id"

_INVALID_JSON_REASON = "Invalid JSON payload"


class WebhookRegistration(BaseModel):
    """Body of POST /register-webhook."""

    webhookId: str | None = None
    secret: str | None = None


def _truncate(signature: str | None) -> str | None:
    if signature is None:
        return None
    return signature[:10] + "..."


def _log_webhook(webhook_id: str | None, event_type: str | None, status: str) -> None:
    """Audit log for delivery activity."""
    logger.info(
        "WEBHOOK_AUDIT id=%s event=%s status=%s",
        webhook_id,
        event_type,
        status,
    )


def _rejection(reason: str) -> JSONResponse:
    return JSONResponse(
        {
            "status": "error",
            "message": "Webhook verification failed",
            "error": reason,
        },
        status_code=400,
    )


def _registration_error() -> JSONResponse:
    return JSONResponse(
        {"status": "error", "message": "webhookId and secret are required"},
        status_code=400,
    )


async def _handle_registration(request: Request, registry: WebhookRegistry) -> JSONResponse:
    try:
        body = WebhookRegistration.model_validate(await request.json())
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        return _registration_error()

    try:
        registry.register(body.webhookId or "", body.secret or "")
    except InvalidArgumentError as exc:
        logger.warning("Webhook registration rejected: %s", exc)
        return _registration_error()

    return JSONResponse(
        {
            "status": "success",
            "message": "Webhook configuration registered",
            "webhookId": body.webhookId,
        }
    )


async def _handle_delivery(request: Request, verifier: DeliveryVerifier) -> JSONResponse:
    """Verify and record one delivery.

    Returns 200 when admitted, 400 for every rejection kind.
    """
    start = time.time()

    signature = request.headers.get(SIGNATURE_HEADER)
    event_type = request.headers.get(EVENT_HEADER)
    webhook_id = request.headers.get(WEBHOOK_ID_HEADER)

    logger.info(
        "Webhook request received: signature=%s event=%s webhookId=%s",
        _truncate(signature),
        event_type,
        webhook_id,
    )

    delivery = Delivery(payload=None, signature=signature, webhook_id=webhook_id, event_type=event_type)

    # header checks come before the body is looked at
    missing = verifier.check_presence(delivery)
    if missing is not None:
        result = AdmissionResult(status=missing)
    else:
        try:
            payload = parse_payload(await request.body())
        except ValueError:
            _log_webhook(webhook_id, event_type, "invalid_json")
            return _rejection(_INVALID_JSON_REASON)
        result = verifier.admit(replace(delivery, payload=payload))

    if not result.admitted:
        _log_webhook(webhook_id, event_type, result.status.value)
        logger.warning("Webhook error: %s", result.reason)
        return _rejection(result.reason)

    _log_webhook(webhook_id, event_type, result.status.value)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Webhook payload for %s: %s", webhook_id, json.dumps(payload, indent=2))

    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s/%s", elapsed_ms, webhook_id, event_type)

    return JSONResponse({"status": "success", "message": "Webhook processed successfully"})


def register_webhook_routes(app: FastAPI, registry: WebhookRegistry, verifier: DeliveryVerifier) -> None:
    """Register webhook endpoint routes on the FastAPI app."""

    @app.post("/register-webhook")
    async def register_webhook(request: Request):
        """Register a webhook id with its shared secret."""
        return await _handle_registration(request, registry)

    @app.post("/webhook")
    async def receive_webhook(request: Request):
        """Receive a signed webhook delivery."""
        return await _handle_delivery(request, verifier)

    @app.get("/events/{webhook_id}")
    async def list_events(webhook_id: str):
        """Admitted events for one webhook, oldest first."""
        events = registry.events_of(webhook_id)
        if events is None:
            return JSONResponse(
                {"status": "error", "message": "Webhook configuration not found"},
                status_code=404,
            )
        return {
            "status": "success",
            "webhookId": webhook_id,
            "events": [event.to_dict() for event in events],
        }

    @app.get("/webhooks")
    async def list_webhooks():
        """Registered webhook ids with their event counts (no secrets)."""
        return {
            "status": "success",
            "webhooks": [summary.to_dict() for summary in registry.list()],
        }

    logger.info("Webhook routes registered: /register-webhook, /webhook, /events/{id}, /webhooks")

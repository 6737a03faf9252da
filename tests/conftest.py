"""Shared fixtures for the webhook receiver test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from webhook_receiver.config import Settings
from webhook_receiver.serve import create_app
from webhook_receiver.webhooks.registry import WebhookRegistry
from webhook_receiver.webhooks.verification import DeliveryVerifier, sign_payload


@pytest.fixture()
def registry() -> WebhookRegistry:
    """A fresh, empty registry per test."""
    return WebhookRegistry()


@pytest.fixture()
def verifier(registry: WebhookRegistry) -> DeliveryVerifier:
    return DeliveryVerifier(registry)


@pytest.fixture()
def settings() -> Settings:
    return Settings(port=4000, public_url="")


@pytest.fixture()
def app(registry: WebhookRegistry, settings: Settings):
    return create_app(registry=registry, settings=settings)


@pytest.fixture()
def client(app):
    """TestClient with lifespan events (startup banner, shutdown log)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def make_delivery_headers() -> Callable[..., dict[str, str]]:
    """Factory for signed delivery headers.

    ``signature`` overrides the computed signature; pass ``None`` for any
    argument to drop that header.
    """

    def _make(
        payload: Any,
        secret: str | None = "s3cr3t",
        webhook_id: str | None = "whk_1",
        event_type: str | None = "order.created",
        signature: str | None = None,
    ) -> dict[str, str]:
        headers: dict[str, str] = {}
        if signature is None and secret is not None:
            signature = sign_payload(secret, payload)
        if signature is not None:
            headers["X-Webhook-Signature"] = signature
        if webhook_id is not None:
            headers["X-Webhook-Id"] = webhook_id
        if event_type is not None:
            headers["X-Webhook-Event"] = event_type
        return headers

    return _make

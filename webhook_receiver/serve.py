"""Webhook receiver application: FastAPI app factory and uvicorn entry point.

The app owns exactly one ``WebhookRegistry`` (on ``app.state.registry``);
tests build their own app around a fresh registry with ``create_app``.
uvicorn handles SIGINT/SIGTERM: it stops accepting connections and lets
in-flight deliveries finish before the lifespan shutdown runs.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from webhook_receiver import __version__
from webhook_receiver.config import Settings, get_settings
from webhook_receiver.logging_config import configure_logging
from webhook_receiver.webhooks.handlers import register_webhook_routes
from webhook_receiver.webhooks.registry import WebhookRegistry
from webhook_receiver.webhooks.verification import DeliveryVerifier

logger = logging.getLogger(__name__)


def _log_banner(settings: Settings) -> None:
    logger.info("=== Webhook Receiver ===")
    logger.info("Server running on port %d", settings.port)
    logger.info("Public URL: %s", settings.base_url)
    logger.info("Endpoints:")
    logger.info("- Webhook URL: /webhook")
    logger.info("- Register webhook: POST /register-webhook")
    logger.info("- List webhooks: GET /webhooks")
    logger.info("- Get events: GET /events/{webhookId}")
    logger.info(
        'To register a webhook, POST {"webhookId": "whk_your_webhook_id", '
        '"secret": "your_webhook_secret"} to /register-webhook'
    )


def create_app(
    registry: WebhookRegistry | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the receiver app around *registry* (a fresh one if omitted)."""
    registry = registry if registry is not None else WebhookRegistry()
    settings = settings if settings is not None else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_banner(settings)
        yield
        logger.info("Shutting down: %d webhook(s) registered, in-memory state discarded", len(registry))

    app = FastAPI(title="Webhook Receiver", version=__version__, lifespan=lifespan)
    app.state.registry = registry
    app.state.settings = settings

    register_webhook_routes(app, registry, DeliveryVerifier(registry))

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok", "webhooks": len(registry)}

    return app


def main() -> None:
    """Run the receiver under uvicorn using environment settings."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

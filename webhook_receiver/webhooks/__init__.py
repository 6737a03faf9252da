"""Webhook inbound system.

Senders register a shared secret under a webhook id, then deliver signed
JSON payloads. Each delivery is HMAC-verified (constant-time) before it is
recorded against its webhook id.
"""

from webhook_receiver.webhooks.exceptions import (
    InvalidArgumentError,
    WebhookNotFoundError,
    WebhookReceiverError,
)
from webhook_receiver.webhooks.models import (
    AdmissionResult,
    AdmissionStatus,
    Delivery,
    StoredEvent,
    WebhookEntry,
    WebhookSummary,
)
from webhook_receiver.webhooks.registry import WebhookRegistry
from webhook_receiver.webhooks.verification import (
    DeliveryVerifier,
    canonical_encode,
    compute_signature,
    sign_payload,
)

__all__ = [
    # Errors
    "WebhookReceiverError",
    "InvalidArgumentError",
    "WebhookNotFoundError",
    # Models
    "AdmissionResult",
    "AdmissionStatus",
    "Delivery",
    "StoredEvent",
    "WebhookEntry",
    "WebhookSummary",
    # Core
    "WebhookRegistry",
    "DeliveryVerifier",
    "canonical_encode",
    "compute_signature",
    "sign_payload",
]

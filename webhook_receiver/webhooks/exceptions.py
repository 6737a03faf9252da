"""Webhook receiver exceptions.

Admission rejections are not exceptions: ``DeliveryVerifier.admit`` returns
an ``AdmissionResult`` carrying the rejection kind. The classes here cover
registry misuse only.
"""

from __future__ import annotations


class WebhookReceiverError(Exception):
    """Base class for all webhook receiver errors."""


class InvalidArgumentError(WebhookReceiverError, ValueError):
    """Registration attempted with an empty webhook id or secret."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} must be a non-empty value")


class WebhookNotFoundError(WebhookReceiverError, KeyError):
    """Operation referenced a webhook id that was never registered."""

    def __init__(self, webhook_id: str) -> None:
        self.webhook_id = webhook_id
        super().__init__(webhook_id)

    def __str__(self) -> str:
        return f"Webhook {self.webhook_id!r} is not registered"

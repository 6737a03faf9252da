"""Webhook data models.

Security contract:
- ``WebhookEntry.secret`` is excluded from repr and never serialized
- ``WebhookSummary`` is the only registry view handed to read endpoints
- ``StoredEvent.timestamp`` is captured at admission, never sender-supplied
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AdmissionStatus(str, Enum):
    """Terminal states of the per-delivery state machine."""

    ADMITTED = "admitted"
    MISSING_SIGNATURE = "missing_signature"
    MISSING_WEBHOOK_ID = "missing_webhook_id"
    UNKNOWN_WEBHOOK = "unknown_webhook"
    INVALID_SIGNATURE = "invalid_signature"


# Reason strings surfaced to senders in the error envelope.
REJECTION_REASONS: dict[AdmissionStatus, str] = {
    AdmissionStatus.MISSING_SIGNATURE: "No signature provided",
    AdmissionStatus.MISSING_WEBHOOK_ID: "No webhook ID provided",
    AdmissionStatus.UNKNOWN_WEBHOOK: "Unknown webhook configuration",
    AdmissionStatus.INVALID_SIGNATURE: "Invalid signature",
}


@dataclass(frozen=True)
class StoredEvent:
    """An admitted delivery, as recorded in a webhook's event log."""

    timestamp: datetime
    event_type: str | None
    payload: Any

    def to_dict(self) -> dict[str, Any]:
        """Render in the wire format used by the events endpoint."""
        ts = self.timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return {
            "timestamp": ts,
            "event": self.event_type,
            "payload": self.payload,
        }


@dataclass
class WebhookEntry:
    """One registered webhook: its shared secret and admitted events.

    ``lock`` guards ``events``; the registry holds it while appending or
    taking a snapshot.
    """

    id: str
    secret: bytes = field(repr=False)
    events: list[StoredEvent] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def event_count(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class WebhookSummary:
    """Secret-free snapshot of a registry entry."""

    id: str
    event_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "eventCount": self.event_count}


@dataclass(frozen=True)
class Delivery:
    """One inbound event submission.

    The three metadata fields come from request headers and may be absent.
    """

    payload: Any
    signature: str | None = None
    webhook_id: str | None = None
    event_type: str | None = None


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of ``DeliveryVerifier.admit``."""

    status: AdmissionStatus
    """Terminal state reached by the delivery."""

    event: StoredEvent | None = None
    """The recorded event, set only when admitted."""

    @property
    def admitted(self) -> bool:
        return self.status is AdmissionStatus.ADMITTED

    @property
    def reason(self) -> str | None:
        """Human-readable rejection reason, ``None`` when admitted."""
        return REJECTION_REASONS.get(self.status)

    def __bool__(self) -> bool:
        return self.admitted

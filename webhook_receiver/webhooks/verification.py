"""Delivery verification and admission: constant-time HMAC-SHA256.

Security contract:
- Presence of signature and webhook id is checked before any HMAC work
- Signatures are compared with hmac.compare_digest() (constant-time)
- Non-hex signatures and length mismatches are rejected as invalid signatures
- Rejected deliveries never touch the registry's event logs

Canonical encoding
------------------
Senders sign ``HMAC-SHA256(secret, canonical_encode(payload))`` and send the
lowercase hex digest. The encoding is compact JSON (no whitespace, ``,`` and
``:`` separators), keys in the order they were received, non-ASCII characters
left unescaped, encoded as UTF-8. That matches ``JSON.stringify(payload)`` in
JavaScript senders. Non-finite numbers have no JSON form and are refused both
when parsing bodies and when encoding.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import math
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from webhook_receiver.webhooks.models import AdmissionResult, AdmissionStatus, Delivery, WebhookEntry
from webhook_receiver.webhooks.registry import WebhookRegistry

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number {text} is out of range")
    return value


def parse_payload(body: bytes | str) -> Any:
    """Parse a delivery body as strict JSON.

    Raises:
        ValueError: If the body is not JSON, uses ``NaN``/``Infinity``, or
            holds a number too large for a finite float.
    """
    return json.loads(body, parse_constant=_reject_constant, parse_float=_parse_finite_float)


def canonical_encode(payload: Any) -> bytes:
    """Serialize *payload* to the bytes that get signed.

    Raises:
        ValueError: If *payload* contains NaN or infinite floats.
    """
    return json.dumps(
        payload,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def compute_signature(secret: bytes, payload: Any) -> str:
    """Return the lowercase hex HMAC-SHA256 of the canonical payload."""
    return hmac.new(secret, canonical_encode(payload), hashlib.sha256).hexdigest()


def sign_payload(secret: str | bytes, payload: Any) -> str:
    """Sender-side helper: signature value for the X-Webhook-Signature header."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return compute_signature(secret, payload)


def signatures_match(signature: str, expected_hex: str) -> bool:
    """Constant-time comparison of a claimed hex signature with the expected one.

    The claimed value is compared byte-for-byte with the lowercase expected
    digest, so uppercase hex does not match. Only the length of the claimed
    signature can influence timing.
    """
    if not _HEX_RE.fullmatch(signature):
        return False
    return hmac.compare_digest(signature.encode("ascii"), expected_hex.encode("ascii"))


class DeliveryVerifier:
    """Verifies deliveries against a registry and admits the authentic ones.

    Each ``admit`` call runs the delivery state machine from scratch::

        RECEIVED -> MISSING_SIGNATURE | MISSING_WEBHOOK_ID
                  | UNKNOWN_WEBHOOK | INVALID_SIGNATURE      (rejected)
        RECEIVED -> VERIFIED -> ADMITTED                    (accepted)

    The registry entry is looked up once per delivery; the secret that
    verified it and the log it is appended to belong to the same entry.
    """

    def __init__(
        self,
        registry: WebhookRegistry,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            registry: Registry holding secrets and event logs.
            clock: Returns the capture time for admitted events (default: UTC now).
        """
        self.registry = registry
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def check_presence(delivery: Delivery) -> AdmissionStatus | None:
        """Return the rejection kind if required metadata is absent, else ``None``."""
        if not delivery.signature:
            return AdmissionStatus.MISSING_SIGNATURE
        if not delivery.webhook_id:
            return AdmissionStatus.MISSING_WEBHOOK_ID
        return None

    def _check(self, delivery: Delivery) -> tuple[AdmissionStatus, WebhookEntry | None]:
        missing = self.check_presence(delivery)
        if missing is not None:
            return missing, None

        entry = self.registry.entry_for(delivery.webhook_id)
        if entry is None:
            return AdmissionStatus.UNKNOWN_WEBHOOK, None

        try:
            expected = compute_signature(entry.secret, delivery.payload)
        except ValueError:
            # no canonical encoding exists, so no signature can match
            return AdmissionStatus.INVALID_SIGNATURE, None
        if not signatures_match(delivery.signature, expected):
            return AdmissionStatus.INVALID_SIGNATURE, None

        return AdmissionStatus.ADMITTED, entry

    def verify(self, delivery: Delivery) -> AdmissionStatus:
        """Run the checks without recording anything.

        Returns:
            ``AdmissionStatus.ADMITTED`` if the delivery is authentic,
            otherwise the rejection kind.
        """
        status, _ = self._check(delivery)
        return status

    def admit(self, delivery: Delivery) -> AdmissionResult:
        """Verify *delivery* and, if authentic, append it to its webhook's log.

        Args:
            delivery: Payload plus the signature, webhook id and event type headers.

        Returns:
            AdmissionResult with the terminal status and, when admitted,
            the stored event.
        """
        status, entry = self._check(delivery)
        if entry is None:
            return AdmissionResult(status=status)

        event = self.registry.record_to(
            entry,
            delivery.event_type,
            delivery.payload,
            clock=self._clock,
        )
        return AdmissionResult(status=AdmissionStatus.ADMITTED, event=event)

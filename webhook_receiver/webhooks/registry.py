"""Webhook registry: in-memory store of webhook secrets and event logs.

Thread-safety:
- ``_lock`` guards the id -> entry mapping (insert, lookup, listing)
- each ``WebhookEntry.lock`` guards that entry's event log
- appends to different ids never share a lock; appends to one id serialize

Re-registering an id replaces the whole entry, so the secret changes and
the event log starts over. Entries are never removed; the registry lives
as long as the process and is not persisted.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from webhook_receiver.webhooks.exceptions import InvalidArgumentError, WebhookNotFoundError
from webhook_receiver.webhooks.models import StoredEvent, WebhookEntry, WebhookSummary

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WebhookRegistry:
    """Mapping from webhook id to its secret and admitted events.

    Examples
    --------
    >>> registry = WebhookRegistry()
    >>> registry.register("whk_1", "s3cr3t")
    >>> registry.lookup("whk_1")
    WebhookSummary(id='whk_1', event_count=0)
    """

    def __init__(self) -> None:
        # dict preserves registration order, which list() relies on
        self._entries: dict[str, WebhookEntry] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(self, webhook_id: str, secret: str | bytes) -> None:
        """Create or replace the entry for *webhook_id* with an empty log.

        Parameters
        ----------
        webhook_id:
            Registrant-chosen identifier.
        secret:
            Shared HMAC secret. ``str`` secrets are encoded as UTF-8.

        Raises
        ------
        InvalidArgumentError
            If *webhook_id* or *secret* is empty.
        """
        if not webhook_id:
            raise InvalidArgumentError("webhookId")
        if not secret:
            raise InvalidArgumentError("secret")
        if isinstance(secret, str):
            secret = secret.encode("utf-8")

        entry = WebhookEntry(id=webhook_id, secret=secret)
        with self._lock:
            replaced = webhook_id in self._entries
            self._entries[webhook_id] = entry

        if replaced:
            logger.info("Re-registered webhook %s (event log reset)", webhook_id)
        else:
            logger.info("Registered webhook configuration: %s", webhook_id)

    def append_event(self, webhook_id: str, event: StoredEvent) -> None:
        """Append *event* to the log of *webhook_id*.

        Raises
        ------
        WebhookNotFoundError
            If *webhook_id* is not registered.
        """
        entry = self._get(webhook_id)
        with entry.lock:
            entry.events.append(event)

    def record(
        self,
        webhook_id: str,
        event_type: str | None,
        payload: object,
        clock: Callable[[], datetime] = _utcnow,
    ) -> StoredEvent:
        """Capture a timestamp and append a new event in one locked step.

        Taking the timestamp under the entry lock keeps timestamps
        non-decreasing in log order.

        Raises
        ------
        WebhookNotFoundError
            If *webhook_id* is not registered.
        """
        return self.record_to(self._get(webhook_id), event_type, payload, clock=clock)

    def record_to(
        self,
        entry: WebhookEntry,
        event_type: str | None,
        payload: object,
        clock: Callable[[], datetime] = _utcnow,
    ) -> StoredEvent:
        """Like ``record``, for an entry already obtained from ``entry_for``.

        If *entry* was replaced by a re-registration in the meantime, the
        event lands in the discarded log, never in the replacement.
        """
        with entry.lock:
            event = StoredEvent(timestamp=clock(), event_type=event_type, payload=payload)
            entry.events.append(event)
        return event

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def lookup(self, webhook_id: str) -> WebhookSummary | None:
        """Return a secret-free view of *webhook_id*, or ``None`` if unknown."""
        entry = self._find(webhook_id)
        if entry is None:
            return None
        with entry.lock:
            return WebhookSummary(id=entry.id, event_count=entry.event_count)

    def entry_for(self, webhook_id: str) -> WebhookEntry | None:
        """Return the live entry for *webhook_id*, secret included.

        Only the delivery verifier calls this, so that one delivery verifies
        and appends against the same entry.
        """
        return self._find(webhook_id)

    def list(self) -> list[WebhookSummary]:
        """Snapshot of every registered id with its event count, in registration order."""
        with self._lock:
            entries = list(self._entries.values())
        summaries = []
        for entry in entries:
            with entry.lock:
                summaries.append(WebhookSummary(id=entry.id, event_count=entry.event_count))
        return summaries

    def events_of(self, webhook_id: str) -> list[StoredEvent] | None:
        """Copy of the event log for *webhook_id* in admission order, or ``None``."""
        entry = self._find(webhook_id)
        if entry is None:
            return None
        with entry.lock:
            return list(entry.events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, webhook_id: object) -> bool:
        with self._lock:
            return webhook_id in self._entries

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, webhook_id: str) -> WebhookEntry | None:
        with self._lock:
            return self._entries.get(webhook_id)

    def _get(self, webhook_id: str) -> WebhookEntry:
        entry = self._find(webhook_id)
        if entry is None:
            raise WebhookNotFoundError(webhook_id)
        return entry

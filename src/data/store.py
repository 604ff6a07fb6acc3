"""
src/data/store.py
─────────────────
Threshold and ticket stores on top of the document store.

Provides:
  - ThresholdStore : get / set / subscribe for the active anomaly thresholds
  - TicketStore    : create / resolve / list / subscribe for merchant tickets
  - sort_tickets() : Pending first, then newest created_at first

Both stores scope their documents by tenant and user:
  artifacts/<app_id>/users/<user_id>/config/anomaly_thresholds
  artifacts/<app_id>/users/<user_id>/merchant_messages/<ticket id>
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import pydantic
from loguru import logger

from config.settings import Settings
from src.data.documents import DocumentStore, Unsubscribe
from src.data.models import DEFAULT_THRESHOLDS, Thresholds, Ticket, TicketStatus
from src.errors import NotFoundError, StoreUnavailableError, ValidationError

THRESHOLDS_DOC_ID = "anomaly_thresholds"


def user_scope(app_id: str, user_id: str) -> str:
    return f"artifacts/{app_id}/users/{user_id}"


# ── Thresholds ────────────────────────────────────────────────────────────────

class ThresholdStore:
    """
    Active anomaly thresholds for one tenant/user scope.

    Without a document store the thresholds live in memory and only local
    subscribers are notified.
    """

    def __init__(self, documents: DocumentStore | None, app_id: str, user_id: str) -> None:
        self._documents = documents
        self._collection = f"{user_scope(app_id, user_id)}/config"
        self._lock = threading.RLock()
        self._notify_lock = threading.RLock()
        self._last_known: Thresholds = DEFAULT_THRESHOLDS
        self._local_listeners: dict[int, Callable[[Thresholds], None]] = {}
        self._next_token = 0

    @classmethod
    def from_settings(cls, documents: DocumentStore | None, settings: Settings) -> ThresholdStore:
        return cls(documents, settings.APP_ID, settings.USER_ID)

    @property
    def persistent(self) -> bool:
        return self._documents is not None

    def _parse(self, data: dict[str, Any] | None) -> Thresholds:
        """Build Thresholds from a stored document, filling missing fields with defaults."""
        if not data:
            return DEFAULT_THRESHOLDS
        try:
            return Thresholds.model_validate(
                {k: data[k] for k in Thresholds.model_fields if k in data and data[k] is not None}
            )
        except pydantic.ValidationError:
            logger.warning("Stored thresholds are invalid ({}); using defaults", data)
            return DEFAULT_THRESHOLDS

    def get(self) -> Thresholds:
        """
        Return the current thresholds.

        The first read against an empty store persists the defaults; the
        insert is atomic so concurrent first readers leave one document.
        Falls back to the last known value if the store is unreachable.
        """
        if self._documents is None:
            with self._lock:
                return self._last_known
        try:
            data = self._documents.create_if_absent(
                self._collection, THRESHOLDS_DOC_ID, DEFAULT_THRESHOLDS.model_dump()
            )
        except StoreUnavailableError:
            logger.warning("Threshold store unavailable; serving last known thresholds")
            with self._lock:
                return self._last_known
        thresholds = self._parse(data)
        with self._lock:
            self._last_known = thresholds
        return thresholds

    def set(self, next_thresholds: Thresholds | dict[str, Any]) -> Thresholds:
        """
        Validate and persist new thresholds.

        Raises:
            ValidationError: A limit is missing, non-numeric or negative
            StoreUnavailableError: The backing store rejected the write
        """
        try:
            if isinstance(next_thresholds, Thresholds):
                raw = next_thresholds.model_dump()
            else:
                # Partial input keeps the current value of the omitted field
                raw = {**self.get().model_dump(), **dict(next_thresholds)}
            thresholds = Thresholds.model_validate(raw)
        except (pydantic.ValidationError, TypeError, ValueError) as exc:
            raise ValidationError(f"Thresholds must be valid non-negative numbers. {exc}") from exc

        if self._documents is None:
            with self._lock:
                self._last_known = thresholds
            # Listeners always see the latest value, even with concurrent setters
            with self._notify_lock:
                with self._lock:
                    latest = self._last_known
                    listeners = list(self._local_listeners.values())
                for listener in listeners:
                    listener(latest)
            return thresholds

        self._documents.set_document(
            self._collection, THRESHOLDS_DOC_ID, thresholds.model_dump(), merge=True
        )
        with self._lock:
            self._last_known = thresholds
        logger.info(
            "Thresholds saved: error_rate_limit={} low_volume_limit={}",
            thresholds.error_rate_limit,
            thresholds.low_volume_limit,
        )
        return thresholds

    def subscribe(self, on_change: Callable[[Thresholds], None]) -> Unsubscribe:
        """Deliver the current thresholds now and after every successful set()."""
        if self._documents is None:
            with self._lock:
                token = self._next_token
                self._next_token += 1
                self._local_listeners[token] = on_change

            def unsubscribe_local() -> None:
                with self._lock:
                    self._local_listeners.pop(token, None)

            on_change(self.get())
            return unsubscribe_local

        def deliver(data: dict[str, Any] | None) -> None:
            thresholds = self._parse(data)
            with self._lock:
                self._last_known = thresholds
            on_change(thresholds)

        # Create the defaults before watching so the first delivery happens once
        self.get()
        unsubscribe = self._documents.watch_document(self._collection, THRESHOLDS_DOC_ID, deliver)
        on_change(self.get())
        return unsubscribe


# ── Tickets ───────────────────────────────────────────────────────────────────

def sort_tickets(tickets: Iterable[Ticket]) -> list[Ticket]:
    """Pending before Resolved, then newest created_at first."""
    return sorted(tickets, key=lambda t: (not t.is_pending, -t.created_at.timestamp()))


class TicketStore:
    """Merchant support tickets for one tenant/user scope."""

    def __init__(self, documents: DocumentStore | None, app_id: str, user_id: str) -> None:
        self._documents = documents
        self._collection = f"{user_scope(app_id, user_id)}/merchant_messages"

    @classmethod
    def from_settings(cls, documents: DocumentStore | None, settings: Settings) -> TicketStore:
        return cls(documents, settings.APP_ID, settings.USER_ID)

    @property
    def available(self) -> bool:
        return self._documents is not None

    def _require(self) -> DocumentStore:
        if self._documents is None:
            raise StoreUnavailableError("Ticket store is not configured")
        return self._documents

    @staticmethod
    def _to_ticket(doc_id: str, data: dict[str, Any]) -> Ticket | None:
        try:
            return Ticket.model_validate({**data, "id": doc_id})
        except pydantic.ValidationError:
            logger.warning("Skipping malformed ticket document {}", doc_id)
            return None

    def _to_tickets(self, docs: list[tuple[str, dict[str, Any]]]) -> list[Ticket]:
        tickets = (self._to_ticket(doc_id, data) for doc_id, data in docs)
        return sort_tickets(t for t in tickets if t is not None)

    def create(self, terminal_id: str, merchant_name: str, message: str) -> Ticket:
        documents = self._require()
        data = {
            "terminal_id": terminal_id,
            "merchant_name": merchant_name,
            "message": message,
            "status": TicketStatus.PENDING.value,
            "created_at": datetime.now(tz=UTC).isoformat(),
        }
        doc_id = documents.add_document(self._collection, data)
        logger.info("Ticket {} opened for terminal {}", doc_id, terminal_id)
        return Ticket.model_validate({**data, "id": doc_id})

    def resolve(self, ticket_id: str) -> None:
        """
        Mark a ticket Resolved.

        Resolving an already resolved ticket is a no-op.

        Raises:
            NotFoundError: Unknown ticket id
        """
        documents = self._require()
        written = documents.update_document(
            self._collection,
            ticket_id,
            {
                "status": TicketStatus.RESOLVED.value,
                "resolved_at": datetime.now(tz=UTC).isoformat(),
            },
            when=lambda current: current.get("status") != TicketStatus.RESOLVED.value,
        )
        if written:
            logger.info("Ticket {} resolved", ticket_id)

    def get(self, ticket_id: str) -> Ticket:
        data = self._require().get_document(self._collection, ticket_id)
        ticket = self._to_ticket(ticket_id, data) if data is not None else None
        if ticket is None:
            raise NotFoundError(f"Unknown ticket {ticket_id!r}")
        return ticket

    def list(self) -> list[Ticket]:
        return self._to_tickets(self._require().query(self._collection))

    def subscribe(self, on_change: Callable[[list[Ticket]], None]) -> Unsubscribe:
        """Deliver the full sorted ticket list now and after every create/resolve."""
        documents = self._require()
        unsubscribe = documents.watch_collection(
            self._collection, lambda docs: on_change(self._to_tickets(docs))
        )
        try:
            on_change(self.list())
        except StoreUnavailableError:
            unsubscribe()
            raise
        return unsubscribe

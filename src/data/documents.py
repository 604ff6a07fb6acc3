"""
src/data/documents.py
─────────────────────
SQLite-backed JSON document store.

Provides the document primitives the threshold and ticket stores build on:
  - get_document()      : point read
  - set_document()      : point write, optionally merged into the existing doc
  - create_if_absent()  : atomic insert-if-missing, returns the stored doc
  - add_document()      : insert with a fresh id
  - update_document()   : conditional field update of an existing doc
  - query()             : every document in a collection
  - watch_document() / watch_collection() : live listeners

Listeners run after the write commits, outside the store lock, and always
receive a fresh read of the current data rather than the value written.
Deliveries are serialised by a separate notification lock, so concurrent
writers cannot leave a listener holding an older value than the stored one.
Writes from other processes sharing the same file are picked up by
poll_once() / start_polling(), which watch SQLite's PRAGMA data_version.

Thread safety: check_same_thread=False + an instance-level lock.
"""
from __future__ import annotations

import itertools
import json
import sqlite3
import threading
import uuid
from collections.abc import Callable
from typing import Any

from loguru import logger

from src.errors import NotFoundError, StoreUnavailableError

DocumentListener = Callable[[dict[str, Any] | None], None]
CollectionListener = Callable[[list[tuple[str, dict[str, Any]]]], None]
Unsubscribe = Callable[[], None]

_CREATE_DOCUMENTS = """
CREATE TABLE IF NOT EXISTS documents (
    collection  TEXT NOT NULL,
    doc_id      TEXT NOT NULL,
    data        TEXT NOT NULL,
    PRIMARY KEY (collection, doc_id)
);
"""


class DocumentStore:
    """JSON documents grouped into collections, keyed by (collection, doc_id)."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.RLock()
        self._notify_lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                self._conn.executescript(_CREATE_DOCUMENTS)
            self._data_version = self._read_data_version()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open document store at {path!r}: {exc}") from exc

        self._ids = itertools.count()
        self._doc_listeners: dict[tuple[str, str], dict[int, DocumentListener]] = {}
        self._coll_listeners: dict[str, dict[int, CollectionListener]] = {}
        self._poll_stop = threading.Event()
        self._poller: threading.Thread | None = None

    @classmethod
    def open(cls, url: str) -> DocumentStore | None:
        """Open the store at `url`, or return None when persistence is disabled."""
        if not url:
            logger.warning("DATABASE_URL is empty; running without a document store")
            return None
        return cls(url)

    # ── Low-level helpers ─────────────────────────────────────────────────────

    def _read_data_version(self) -> int:
        return int(self._conn.execute("PRAGMA data_version").fetchone()[0])

    def _read(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        row = self._conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        ).fetchone()
        return json.loads(row["data"]) if row else None

    def _write(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO documents (collection, doc_id, data) VALUES (?, ?, ?)",
            (collection, doc_id, json.dumps(data)),
        )

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        try:
            with self._lock:
                return self._read(collection, doc_id)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Read of {collection}/{doc_id} failed: {exc}") from exc

    def query(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (doc_id, data) pairs for every document in a collection."""
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT doc_id, data FROM documents WHERE collection = ? ORDER BY doc_id",
                    (collection,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Query of {collection} failed: {exc}") from exc
        return [(row["doc_id"], json.loads(row["data"])) for row in rows]

    # ── Writes ────────────────────────────────────────────────────────────────

    def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """Write a document; with merge=True, fields are merged into the existing one."""
        try:
            with self._lock, self._conn:
                current = self._read(collection, doc_id) if merge else None
                self._write(collection, doc_id, {**(current or {}), **data})
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Write of {collection}/{doc_id} failed: {exc}") from exc
        self._notify(collection, doc_id)

    def create_if_absent(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert `data` only if the document does not exist yet.

        Safe to call from many threads or processes: exactly one document is
        ever created. Returns whatever is stored after the call.
        """
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    "INSERT OR IGNORE INTO documents (collection, doc_id, data) VALUES (?, ?, ?)",
                    (collection, doc_id, json.dumps(data)),
                )
                created = cursor.rowcount == 1
                stored = self._read(collection, doc_id)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Create of {collection}/{doc_id} failed: {exc}") from exc
        if created:
            self._notify(collection, doc_id)
        return stored if stored is not None else data

    def add_document(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document under a fresh id and return the id."""
        doc_id = uuid.uuid4().hex
        try:
            with self._lock, self._conn:
                self._write(collection, doc_id, data)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Insert into {collection} failed: {exc}") from exc
        self._notify(collection, doc_id)
        return doc_id

    def update_document(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        when: Callable[[dict[str, Any]], bool] | None = None,
    ) -> bool:
        """
        Merge `fields` into an existing document.

        Args:
            when: Optional predicate on the current document; the update is
                  skipped when it returns False

        Returns:
            True if the document was written

        Raises:
            NotFoundError: The document does not exist
        """
        try:
            with self._lock, self._conn:
                current = self._read(collection, doc_id)
                if current is None:
                    raise NotFoundError(f"No document {doc_id!r} in {collection}")
                if when is not None and not when(current):
                    return False
                self._write(collection, doc_id, {**current, **fields})
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Update of {collection}/{doc_id} failed: {exc}") from exc
        self._notify(collection, doc_id)
        return True

    # ── Live listeners ────────────────────────────────────────────────────────

    def watch_document(self, collection: str, doc_id: str, listener: DocumentListener) -> Unsubscribe:
        key = (collection, doc_id)
        token = next(self._ids)
        with self._lock:
            self._doc_listeners.setdefault(key, {})[token] = listener

        def unsubscribe() -> None:
            with self._lock:
                self._doc_listeners.get(key, {}).pop(token, None)

        return unsubscribe

    def watch_collection(self, collection: str, listener: CollectionListener) -> Unsubscribe:
        token = next(self._ids)
        with self._lock:
            self._coll_listeners.setdefault(collection, {})[token] = listener

        def unsubscribe() -> None:
            with self._lock:
                self._coll_listeners.get(collection, {}).pop(token, None)

        return unsubscribe

    def _notify(self, collection: str, doc_id: str) -> None:
        # Read and delivery happen under one lock so the last delivery carries
        # the latest stored value, whatever order concurrent writers finish in
        with self._notify_lock:
            with self._lock:
                doc_listeners = list(self._doc_listeners.get((collection, doc_id), {}).values())
                coll_listeners = list(self._coll_listeners.get(collection, {}).values())

            if doc_listeners:
                data = self.get_document(collection, doc_id)
                for listener in doc_listeners:
                    self._deliver(listener, data)
            if coll_listeners:
                docs = self.query(collection)
                for listener in coll_listeners:
                    self._deliver(listener, docs)

    def _notify_all(self) -> None:
        with self._notify_lock:
            with self._lock:
                doc_keys = [key for key, listeners in self._doc_listeners.items() if listeners]
                collections = [name for name, listeners in self._coll_listeners.items() if listeners]
            for collection, doc_id in doc_keys:
                with self._lock:
                    listeners = list(self._doc_listeners.get((collection, doc_id), {}).values())
                data = self.get_document(collection, doc_id)
                for listener in listeners:
                    self._deliver(listener, data)
            for collection in collections:
                with self._lock:
                    listeners = list(self._coll_listeners.get(collection, {}).values())
                docs = self.query(collection)
                for listener in listeners:
                    self._deliver(listener, docs)

    @staticmethod
    def _deliver(listener: Callable[[Any], None], payload: Any) -> None:
        try:
            listener(payload)
        except Exception:
            logger.exception("Document listener raised; continuing with remaining listeners")

    # ── Cross-process change detection ────────────────────────────────────────

    def poll_once(self) -> bool:
        """Notify every listener if another connection committed since the last check."""
        try:
            with self._lock:
                version = self._read_data_version()
                changed = version != self._data_version
                self._data_version = version
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Change check failed: {exc}") from exc
        if changed:
            logger.debug("External write detected in {}", self.path)
            self._notify_all()
        return changed

    def start_polling(self, interval_s: float) -> None:
        if interval_s <= 0 or self._poller is not None:
            return
        self._poll_stop.clear()
        self._poller = threading.Thread(
            target=self._poll_loop, args=(interval_s,), name="document-store-poll", daemon=True
        )
        self._poller.start()

    def _poll_loop(self, interval_s: float) -> None:
        while not self._poll_stop.wait(interval_s):
            try:
                self.poll_once()
            except StoreUnavailableError:
                logger.warning("Document store change check failed; will retry")

    def stop_polling(self) -> None:
        self._poll_stop.set()
        if self._poller is not None and self._poller is not threading.current_thread():
            self._poller.join(timeout=5)
        self._poller = None

    def close(self) -> None:
        self.stop_polling()
        with self._lock:
            self._conn.close()

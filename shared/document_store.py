"""
In-memory document store with live query subscriptions.

This is the stand-in for the hosted document database the marketplace
writes to. It implements the collaborator contract the workflow relies on:

- get by id, add with a generated id, set, partial update
- equality-filtered queries ordered by a field
- live subscriptions that receive the full result set on every change
- server-assigned timestamps and counters resolved at write time

Design decisions:
- Every operation awaits once before running, so callers really do suspend
  there; the body after that point runs without interruption, which makes
  each single-document write atomic
- update() takes an optional equality precondition, checked in the same
  atomic step as the write
- Documents are copied on the way in and out; callers never share state
  with the store
- Faults can be queued per collection/operation to exercise error paths
"""

import asyncio
import copy
import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from shared.errors import DocumentNotFound, PreconditionFailed, StoreError

logger = logging.getLogger("document_store")


class _ServerTimestamp:
    """Sentinel replaced by the store clock when a write is applied."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    """Write-time counter adjustment: the stored value plus amount."""
    amount: int = 1


@dataclass(frozen=True)
class WriteRecord:
    """One applied write, kept for inspection."""
    operation: str
    collection: str
    doc_id: str


Snapshot = list[dict[str, Any]]
SnapshotCallback = Callable[[Snapshot], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Watch:
    collection: str
    callback: SnapshotCallback
    where: dict[str, Any]
    order_by: Optional[str]
    descending: bool
    limit: Optional[int]


class Subscription:
    """Handle returned by DocumentStore.subscribe()."""

    def __init__(self, store: "DocumentStore", watch: _Watch):
        self._store = store
        self._watch = watch
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._store._remove_watch(self._watch)
            self.active = False


def _matches(doc: dict[str, Any], where: dict[str, Any]) -> bool:
    return all(doc.get(field) == value for field, value in where.items())


def _ordered(docs: list[dict[str, Any]], order_by: Optional[str], descending: bool) -> list[dict[str, Any]]:
    """Sort by a field; documents missing the field go last either way."""
    if not order_by:
        return docs
    present = [d for d in docs if d.get(order_by) is not None]
    missing = [d for d in docs if d.get(order_by) is None]
    present.sort(key=lambda d: d[order_by], reverse=descending)
    return present + missing


class DocumentStore:
    """
    Async document database with collections of JSON-like documents.

    Example:
        store = DocumentStore()
        booking_id = await store.add("bookings", {"status": "pending"})
        await store.update(
            "bookings", booking_id,
            {"status": "confirmed", "updatedAt": SERVER_TIMESTAMP},
            expected={"status": "pending"},
        )
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: Source of server timestamps. Defaults to UTC wall time.
        """
        self._clock = clock or _utcnow
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._watches: dict[str, list[_Watch]] = defaultdict(list)
        self._faults: dict[tuple[str, str], deque[StoreError]] = defaultdict(deque)
        self.writes: list[WriteRecord] = []

    def now(self) -> datetime:
        """Current server time."""
        return self._clock()

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Fetch one document (with its id under "id"), or None."""
        await self._suspend(collection, "get")
        doc = self._collections[collection].get(doc_id)
        if doc is None:
            return None
        return self._with_id(doc_id, doc)

    async def query(
        self,
        collection: str,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Snapshot:
        """Documents whose fields equal every value in where, optionally ordered."""
        await self._suspend(collection, "query")
        return self._run_query(collection, where or {}, order_by, descending, limit)

    # =========================================================================
    # Writes
    # =========================================================================

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document under a generated id and return the id."""
        await self._suspend(collection, "add")
        doc_id = uuid4().hex
        self._collections[collection][doc_id] = self._resolve({}, data)
        self._record("add", collection, doc_id, before=None)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document under a known id."""
        await self._suspend(collection, "set")
        before = self._collections[collection].get(doc_id)
        self._collections[collection][doc_id] = self._resolve({}, data)
        self._record("set", collection, doc_id, before=before)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Merge fields into an existing document.

        Args:
            collection: Collection name
            doc_id: Target document
            fields: Fields to overwrite; may contain SERVER_TIMESTAMP/Increment
            expected: Field values that must still hold when the write lands

        Raises:
            DocumentNotFound: If the document does not exist
            PreconditionFailed: If an expected value no longer matches
        """
        await self._suspend(collection, "update")
        current = self._collections[collection].get(doc_id)
        if current is None:
            raise DocumentNotFound(collection, doc_id)
        for field_name, value in (expected or {}).items():
            if current.get(field_name) != value:
                raise PreconditionFailed(collection, doc_id, field_name)
        before = copy.deepcopy(current)
        current.update(self._resolve(current, fields))
        self._record("update", collection, doc_id, before=before)

    def seed(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Load a fixture document without faults, logging or notifications."""
        self._collections[collection][doc_id] = self._resolve({}, data)

    # =========================================================================
    # Live queries
    # =========================================================================

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Subscription:
        """
        Watch a query.

        The callback receives the current result set immediately, then the
        full result set again after every write touching a matching document.
        """
        watch = _Watch(collection, callback, dict(where or {}), order_by, descending, limit)
        self._watches[collection].append(watch)
        self._deliver(watch)
        return Subscription(self, watch)

    def _remove_watch(self, watch: _Watch) -> None:
        try:
            self._watches[watch.collection].remove(watch)
        except ValueError:
            pass

    def _deliver(self, watch: _Watch) -> None:
        snapshot = self._run_query(
            watch.collection, watch.where, watch.order_by, watch.descending, watch.limit
        )
        try:
            watch.callback(snapshot)
        except Exception as e:
            logger.error(f"Subscriber on '{watch.collection}' raised: {e}")

    # =========================================================================
    # Fault injection
    # =========================================================================

    def inject_fault(self, collection: str, operation: str, code: str, times: int = 1) -> None:
        """
        Make the next `times` calls of an operation on a collection fail.

        Args:
            collection: Collection name
            operation: "get", "query", "add", "set" or "update"
            code: Store error code, e.g. "unavailable" or "permission-denied"
            times: How many consecutive calls fail
        """
        for _ in range(times):
            self._faults[(collection, operation)].append(StoreError(code))

    def clear_faults(self) -> None:
        self._faults.clear()

    # =========================================================================
    # Internals
    # =========================================================================

    async def _suspend(self, collection: str, operation: str) -> None:
        await asyncio.sleep(0)
        queued = self._faults.get((collection, operation))
        if queued:
            error = queued.popleft()
            logger.warning(f"Injected fault on {operation} {collection}: {error.code}")
            raise error

    def _resolve(self, current: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
        resolved = {}
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                resolved[key] = self.now()
            elif isinstance(value, Increment):
                resolved[key] = (current.get(key) or 0) + value.amount
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _record(self, operation: str, collection: str, doc_id: str, before: Optional[dict[str, Any]]) -> None:
        self.writes.append(WriteRecord(operation, collection, doc_id))
        after = self._collections[collection].get(doc_id)
        for watch in list(self._watches.get(collection, [])):
            touched = (before is not None and _matches(before, watch.where)) or (
                after is not None and _matches(after, watch.where)
            )
            if touched:
                self._deliver(watch)

    def _run_query(
        self,
        collection: str,
        where: dict[str, Any],
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
    ) -> Snapshot:
        docs = [
            self._with_id(doc_id, doc)
            for doc_id, doc in self._collections[collection].items()
            if _matches(doc, where)
        ]
        docs = _ordered(docs, order_by, descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    @staticmethod
    def _with_id(doc_id: str, doc: dict[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(doc)
        result["id"] = doc_id
        return result

    def writes_to(self, collection: str) -> list[WriteRecord]:
        """Applied writes against one collection, oldest first."""
        return [w for w in self.writes if w.collection == collection]

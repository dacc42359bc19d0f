"""
Notification outbox.

Booking decisions must never wait on, or fail because of, notification
delivery. Rather than firing an untracked coroutine, the lifecycle
controller enqueues each notification here. An entry is written to the
outbox collection ("pending dispatch") and then delivered in a background
task through the dispatcher. Entries that fail stay in the collection and
are picked up again by drain().

Entry states:
    pending     -> recorded, not yet delivered
    dispatching -> claimed by a drain() pass, delivery in progress
    dispatched  -> notification record written (channels best-effort)
    skipped     -> recipient has opted out
    failed      -> delivery raised a retryable error; drain() will retry
    abandoned   -> delivery can never succeed (missing recipient, permanent store error)

Design decisions:
- enqueue() is synchronous and returns the delivery task; callers that
  care (the advisory for new bookings) can await it, nobody else does
- Delivery errors are logged and passed to on_failure listeners, never raised
- If the entry itself cannot be recorded, delivery is still attempted
- drain() claims each entry with a status precondition before delivering it,
  so overlapping drains never deliver the same entry twice
- Delivery is at-least-once: if the notification record lands but the
  outcome cannot be written back, a pending entry stays due and is sent
  again by the next drain(); a claimed entry stays dispatching
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import Field

from shared.data_store import OUTBOX, MarketplaceStore
from shared.document_store import SERVER_TIMESTAMP
from shared.errors import PreconditionFailed, RecipientNotFound, StoreError
from shared.models import Document
from notifications.dispatcher import NotificationDispatcher
from notifications.models import (
    BookingCancelled,
    BookingConfirmed,
    BookingRequested,
    DispatchReport,
    parse_payload,
)

logger = logging.getLogger("outbox")

Payload = Union[BookingRequested, BookingConfirmed, BookingCancelled]
FailureListener = Callable[["OutboxEntry", Exception], None]


class OutboxStatus(str, Enum):
    PENDING = "pending"
    DISPATCHING = "dispatching"
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"
    FAILED = "failed"
    ABANDONED = "abandoned"


class OutboxEntry(Document):
    """One notification waiting to be (or already) delivered."""
    id: Optional[str] = None
    recipient_id: str
    sender_id: Optional[str] = None
    title: str
    body: str
    payload: Optional[dict[str, Any]] = None
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = Field(default=0, ge=0)
    last_error: Optional[str] = None
    notification_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def parsed_payload(self) -> Optional[Payload]:
        return parse_payload(self.payload) if self.payload else None


class Outbox:
    """
    Durable queue between booking writes and the notification dispatcher.

    Example:
        outbox = Outbox(data, dispatcher)
        outbox.enqueue("cust-001", "Booking Confirmed", "...", payload)
        await outbox.join()
    """

    def __init__(
        self,
        data: MarketplaceStore,
        dispatcher: NotificationDispatcher,
        max_attempts: int = 5,
    ):
        """
        Args:
            data: Marketplace store (the outbox collection lives alongside bookings)
            dispatcher: Delivers each entry
            max_attempts: Deliveries per entry before drain() gives up on it
        """
        self.data = data
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts
        self._tasks: set[asyncio.Task] = set()
        self._failure_listeners: list[FailureListener] = []

    def on_failure(self, listener: FailureListener) -> None:
        """Register a callback for deliveries that raised."""
        self._failure_listeners.append(listener)

    # =========================================================================
    # Enqueue & deliver
    # =========================================================================

    def enqueue(
        self,
        recipient_id: str,
        title: str,
        body: str,
        payload: Optional[Payload] = None,
        sender_id: Optional[str] = None,
    ) -> "asyncio.Task[Optional[DispatchReport]]":
        """
        Record a notification intent and deliver it in the background.

        Must be called from a running event loop. Returns immediately.
        """
        entry = OutboxEntry(
            recipient_id=recipient_id,
            sender_id=sender_id,
            title=title,
            body=body,
            payload=payload.model_dump(by_alias=True, mode="json") if payload else None,
        )
        task = asyncio.get_running_loop().create_task(self._record_and_deliver(entry))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _record_and_deliver(self, entry: OutboxEntry) -> Optional[DispatchReport]:
        document = entry.to_document()
        document["createdAt"] = SERVER_TIMESTAMP
        try:
            entry.id = await self.data.store.add(OUTBOX, document)
        except StoreError as e:
            logger.error(f"Could not record outbox entry for {entry.recipient_id}: {e}")
        return await self.deliver(entry)

    async def deliver(self, entry: OutboxEntry) -> Optional[DispatchReport]:
        """
        Deliver one entry and record the outcome on it.

        Returns:
            The DispatchReport, or None if delivery raised
        """
        entry.attempts += 1
        try:
            report = await self.dispatcher.notify(
                entry.recipient_id,
                entry.title,
                entry.body,
                payload=entry.parsed_payload(),
                sender_id=entry.sender_id,
            )
        except Exception as e:
            entry.last_error = str(e)
            if isinstance(e, RecipientNotFound) or (isinstance(e, StoreError) and not e.is_transient):
                entry.status = OutboxStatus.ABANDONED
            else:
                entry.status = OutboxStatus.FAILED
            logger.error(
                f"Notification to {entry.recipient_id} {entry.status.value} "
                f"after attempt {entry.attempts}: {e}"
            )
            await self._save(entry)
            self._emit_failure(entry, e)
            return None

        entry.status = OutboxStatus.SKIPPED if report.skipped else OutboxStatus.DISPATCHED
        entry.notification_id = report.notification_id
        entry.last_error = None
        await self._save(entry)
        return report

    async def _save(self, entry: OutboxEntry) -> None:
        if entry.id is None:
            return
        try:
            await self.data.store.update(OUTBOX, entry.id, {
                "status": OutboxStatus(entry.status).value,
                "attempts": entry.attempts,
                "lastError": entry.last_error,
                "notificationId": entry.notification_id,
                "updatedAt": SERVER_TIMESTAMP,
            })
        except StoreError as e:
            logger.error(f"Could not update outbox entry {entry.id}: {e}")

    def _emit_failure(self, entry: OutboxEntry, error: Exception) -> None:
        for listener in self._failure_listeners:
            try:
                listener(entry, error)
            except Exception as e:
                logger.error(f"Outbox failure listener raised: {e}")

    # =========================================================================
    # Worker side
    # =========================================================================

    async def entries(self, status: Optional[OutboxStatus] = None) -> list[OutboxEntry]:
        where = {"status": OutboxStatus(status).value} if status else None
        docs = await self.data.store.query(OUTBOX, where=where, order_by="createdAt")
        return [OutboxEntry.model_validate(d) for d in docs]

    async def drain(self) -> int:
        """
        Redeliver pending and failed entries that have attempts left.

        Returns:
            Number of entries delivered in this pass
        """
        await self.join()
        due = await self.entries(OutboxStatus.PENDING) + await self.entries(OutboxStatus.FAILED)
        delivered = 0
        for entry in due:
            if entry.attempts >= self.max_attempts:
                entry.status = OutboxStatus.ABANDONED
                await self._save(entry)
                logger.warning(f"Outbox entry {entry.id} abandoned after {entry.attempts} attempts")
                continue
            if not await self._claim(entry):
                continue
            if await self.deliver(entry) is not None:
                delivered += 1
        logger.info(f"Outbox drain delivered {delivered} of {len(due)} entries")
        return delivered

    async def _claim(self, entry: OutboxEntry) -> bool:
        """Move an entry to dispatching unless another pass got there first."""
        try:
            await self.data.store.update(
                OUTBOX,
                entry.id,
                {"status": OutboxStatus.DISPATCHING.value, "updatedAt": SERVER_TIMESTAMP},
                expected={"status": OutboxStatus(entry.status).value},
            )
        except PreconditionFailed:
            logger.debug(f"Outbox entry {entry.id} already claimed")
            return False
        except StoreError as e:
            logger.error(f"Could not claim outbox entry {entry.id}: {e}")
            return False
        return True

    async def join(self) -> None:
        """Wait until no background delivery is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

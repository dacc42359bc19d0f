"""
Tests for the notification outbox.

These tests verify that every enqueued notification is recorded, that
delivery outcomes are written back to the entry, and that drain()
redelivers failed entries up to the attempt limit.
"""

import asyncio
from datetime import date

from shared.data_store import NOTIFICATIONS, OUTBOX
from shared.errors import RecipientNotFound
from bookings.outbox import Outbox, OutboxStatus
from notifications.models import BookingConfirmed


def _payload() -> BookingConfirmed:
    return BookingConfirmed(
        booking_id="bkg-001",
        service_id="svc-001",
        service_name="Royal Wedding Buffet",
        event_date=date(2026, 12, 12),
    )


class TestEnqueue:
    """Tests for enqueue and background delivery."""

    async def test_entry_recorded_and_dispatched(self, outbox: Outbox, store, priya_id):
        task = outbox.enqueue(priya_id, "Booking Confirmed", "Body", _payload(), sender_id="vend-001")
        report = await task

        entries = await outbox.entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.status == OutboxStatus.DISPATCHED
        assert entry.attempts == 1
        assert entry.notification_id == report.notification_id
        assert entry.payload["bookingId"] == "bkg-001"
        assert isinstance(entry.parsed_payload(), BookingConfirmed)

    async def test_join_waits_for_all_deliveries(self, outbox: Outbox, store, priya_id, neha_id):
        outbox.enqueue(priya_id, "One", "1")
        outbox.enqueue(neha_id, "Two", "2")

        await outbox.join()

        assert len(store.store.writes_to(NOTIFICATIONS)) == 2

    async def test_opted_out_recipient_is_skipped(self, outbox: Outbox, arjun_id):
        await outbox.enqueue(arjun_id, "Title", "Body")

        assert [e.status for e in await outbox.entries()] == [OutboxStatus.SKIPPED]

    async def test_missing_recipient_abandoned_and_reported(self, outbox: Outbox):
        failures = []
        outbox.on_failure(lambda entry, error: failures.append((entry.recipient_id, error)))

        result = await outbox.enqueue("ghost", "Title", "Body")

        assert result is None
        entry = (await outbox.entries())[0]
        assert entry.status == OutboxStatus.ABANDONED
        assert "ghost" in entry.last_error
        assert failures[0][0] == "ghost"
        assert isinstance(failures[0][1], RecipientNotFound)

    async def test_listener_errors_are_contained(self, outbox: Outbox):
        def broken(entry, error):
            raise RuntimeError("listener bug")

        outbox.on_failure(broken)

        assert await outbox.enqueue("ghost", "Title", "Body") is None

    async def test_unrecorded_entry_still_delivered(self, outbox: Outbox, store, priya_id):
        """If the outbox write fails, the notification is still attempted."""
        store.store.inject_fault(OUTBOX, "add", "unavailable")

        report = await outbox.enqueue(priya_id, "Title", "Body")

        assert report.notification_id is not None
        assert await outbox.entries() == []


class TestDrain:
    """Tests for redelivery of failed entries."""

    async def test_failed_entry_redelivered(self, outbox: Outbox, store, priya_id):
        store.store.inject_fault(NOTIFICATIONS, "add", "unavailable", times=3)
        assert await outbox.enqueue(priya_id, "Title", "Body") is None
        assert (await outbox.entries())[0].status == OutboxStatus.FAILED

        delivered = await outbox.drain()

        entry = (await outbox.entries())[0]
        assert delivered == 1
        assert entry.status == OutboxStatus.DISPATCHED
        assert entry.attempts == 2
        assert entry.last_error is None
        assert len(await store.notifications_for(priya_id)) == 1

    async def test_dispatched_entries_not_redelivered(self, outbox: Outbox, store, priya_id):
        await outbox.enqueue(priya_id, "Title", "Body")

        assert await outbox.drain() == 0
        assert len(store.store.writes_to(NOTIFICATIONS)) == 1

    async def test_entry_abandoned_at_attempt_limit(self, store, dispatcher, priya_id):
        outbox = Outbox(store, dispatcher, max_attempts=1)
        store.store.inject_fault(NOTIFICATIONS, "add", "unavailable", times=3)
        await outbox.enqueue(priya_id, "Title", "Body")

        assert await outbox.drain() == 0
        assert (await outbox.entries())[0].status == OutboxStatus.ABANDONED
        assert await store.notifications_for(priya_id) == []

    async def test_entries_filtered_by_status(self, outbox: Outbox, priya_id, arjun_id):
        await outbox.enqueue(priya_id, "One", "1")
        await outbox.enqueue(arjun_id, "Two", "2")

        dispatched = await outbox.entries(OutboxStatus.DISPATCHED)
        skipped = await outbox.entries(OutboxStatus.SKIPPED)

        assert [e.recipient_id for e in dispatched] == [priya_id]
        assert [e.recipient_id for e in skipped] == [arjun_id]

    async def test_overlapping_drains_deliver_once(self, outbox: Outbox, store, channels, priya_id):
        store.store.inject_fault(NOTIFICATIONS, "add", "unavailable", times=3)
        await outbox.enqueue(priya_id, "Title", "Body")

        results = await asyncio.gather(outbox.drain(), outbox.drain())

        assert sorted(results) == [0, 1]
        assert len(await store.notifications_for(priya_id)) == 1
        assert channels.get_total_sent_count() == 2
        assert (await outbox.entries())[0].status == OutboxStatus.DISPATCHED

    async def test_lost_outcome_is_sent_again(self, outbox: Outbox, store, priya_id):
        store.store.inject_fault(OUTBOX, "update", "unavailable")
        await outbox.enqueue(priya_id, "Title", "Body")

        assert (await outbox.entries())[0].status == OutboxStatus.PENDING
        assert await outbox.drain() == 1
        assert len(await store.notifications_for(priya_id)) == 2

"""
Tests for dashboard summaries.
"""

from datetime import date

import pytest

from shared.models import BookingStatus
from bookings.queries import customer_stats, filter_by_status, vendor_stats


class TestVendorStats:
    """Tests for the vendor dashboard numbers."""

    async def test_royal_caterers(self, store, royal_id):
        stats = vendor_stats(await store.bookings_for_vendor(royal_id))

        assert stats.total_bookings == 3
        assert stats.pending_requests == 1
        assert stats.revenue == 6800000
        assert stats.average_rating == 4.5

    async def test_no_ratings(self, store, lens_id):
        stats = vendor_stats(await store.bookings_for_vendor(lens_id))

        assert stats.total_bookings == 2
        assert stats.revenue == 0
        assert stats.average_rating is None

    def test_empty(self):
        assert vendor_stats([]).total_bookings == 0


class TestCustomerStats:
    """Tests for the customer dashboard numbers."""

    async def test_upcoming_and_reviews(self, store, neha_id):
        stats = customer_stats(await store.bookings_for_customer(neha_id), today=date(2026, 10, 18))

        assert stats.total_bookings == 2
        assert stats.upcoming_events == 1
        assert stats.reviews_given == 1

    async def test_past_confirmed_events_not_upcoming(self, store, neha_id):
        stats = customer_stats(await store.bookings_for_customer(neha_id), today=date(2026, 11, 22))

        assert stats.upcoming_events == 0


class TestFilterByStatus:
    """Tests for the status filter."""

    async def test_all(self, store, royal_id):
        bookings = await store.bookings_for_vendor(royal_id)

        assert filter_by_status(bookings) == bookings

    async def test_single_status(self, store, royal_id):
        bookings = await store.bookings_for_vendor(royal_id)

        assert [b.id for b in filter_by_status(bookings, "pending")] == ["bkg-001"]
        assert [b.id for b in filter_by_status(bookings, BookingStatus.COMPLETED)] == ["bkg-004"]

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            filter_by_status([], "archived")

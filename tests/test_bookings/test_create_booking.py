"""
Tests for customer-initiated booking creation.

These tests verify validation before any write, the denormalized fields
copied from the service, the vendor notification and the soft advisory
when that notification fails.
"""

from datetime import date, time

import pytest

from shared.data_store import BOOKINGS, NOTIFICATIONS
from shared.errors import InvalidState, NotFound, Unauthorized, ValidationError
from shared.models import BookingStatus
from bookings.lifecycle import VENDOR_NOT_NOTIFIED
from bookings.validation import BookingDetails
from tests.conftest import FIXED_NOW


def _details(valid_details: BookingDetails, **overrides) -> BookingDetails:
    return valid_details.model_copy(update=overrides)


class TestCreateBooking:
    """Successful creation."""

    async def test_creates_pending_booking_priced_from_service(
        self, controller, store, valid_details, priya_id
    ):
        receipt = await controller.create_booking("svc-001", priya_id, valid_details)
        await controller.outbox.join()

        booking = await store.get_booking(receipt.booking.id)
        assert booking.status == BookingStatus.PENDING
        assert booking.total_amount == 7500000
        assert booking.service_price == 7500000
        assert booking.service_name == "Royal Wedding Buffet"
        assert booking.vendor_id == "vend-001"
        assert booking.vendor_name == "Royal Caterers"
        assert booking.customer_name == "Priya Sharma"
        assert booking.created_at == FIXED_NOW

    async def test_stores_normalized_details(self, controller, store, valid_details, priya_id):
        receipt = await controller.create_booking("svc-001", priya_id, valid_details)
        await controller.outbox.join()

        booking = receipt.booking
        assert booking.customer_phone == "+919876543210"
        assert booking.customer_email == "priya.sharma@example.com"
        assert booking.event_date == date(2026, 12, 20)
        assert booking.event_time == time(18, 30)
        assert booking.guest_count == 250
        assert booking.special_requests == "Vegetarian menu only"

    async def test_vendor_notified_without_advisory(
        self, controller, store, push_channel, valid_details, priya_id, royal_id
    ):
        receipt = await controller.create_booking("svc-001", priya_id, valid_details)

        assert await receipt.advisory() is None
        notification = (await store.notifications_for(royal_id))[0]
        assert notification.type == "booking_request"
        assert notification.priority == "normal"
        assert notification.sender_id == priya_id
        assert notification.data["bookingId"] == receipt.booking.id
        assert notification.data["customerName"] == "Priya Sharma"
        push = push_channel.find_message_to("fcm-token-royal-0c5d8e6f")
        assert push.subject == "New Booking Request"
        assert push.body == "New booking request from Priya Sharma for Royal Wedding Buffet"

    async def test_vendor_without_push_token_gets_email(
        self, controller, push_channel, email_channel, valid_details, priya_id
    ):
        receipt = await controller.create_booking("svc-002", priya_id, valid_details)

        assert await receipt.advisory() is None
        assert push_channel.get_sent_count() == 0
        assert email_channel.find_message_to("hello@lensandlight.example") is not None

    async def test_new_booking_appears_on_vendor_live_list(
        self, controller, store, valid_details, priya_id, royal_id
    ):
        snapshots = []
        store.watch_vendor_bookings(royal_id, snapshots.append)

        receipt = await controller.create_booking("svc-001", priya_id, valid_details)
        await controller.outbox.join()

        assert len(snapshots[0]) == 3
        assert snapshots[-1][0].id == receipt.booking.id

    async def test_blank_guest_count_defaults_to_zero(self, controller, valid_details, priya_id):
        receipt = await controller.create_booking("svc-001", priya_id, _details(valid_details, guest_count=""))
        await controller.outbox.join()

        assert receipt.booking.guest_count == 0


class TestAdvisory:
    """The soft warning when the vendor could not be notified."""

    async def test_failed_vendor_notification_keeps_booking(
        self, controller, store, valid_details, priya_id
    ):
        store.store.inject_fault(NOTIFICATIONS, "add", "permission-denied")

        receipt = await controller.create_booking("svc-001", priya_id, valid_details)

        assert await receipt.advisory() == VENDOR_NOT_NOTIFIED
        assert (await store.get_booking(receipt.booking.id)).status == BookingStatus.PENDING

    async def test_channel_failures_are_not_an_advisory(self, controller, valid_details, priya_id, channels):
        """Only a failed notification record counts; channel failures are best-effort."""
        channels.push.fail_rate = 1.0
        channels.email.fail_rate = 1.0

        receipt = await controller.create_booking("svc-001", priya_id, valid_details)

        assert await receipt.advisory() is None


class TestValidation:
    """Input is rejected before anything is read or written."""

    @pytest.mark.parametrize("phone", ["98765432", "12345"])
    async def test_bad_phone_rejected_without_write(self, controller, store, valid_details, priya_id, phone):
        with pytest.raises(ValidationError) as exc_info:
            await controller.create_booking("svc-001", priya_id, _details(valid_details, contact_phone=phone))

        assert "Please enter a valid 10-digit phone number" in exc_info.value.errors
        assert store.store.writes_to(BOOKINGS) == []

    async def test_ten_digit_phone_accepted(self, controller, valid_details, priya_id):
        receipt = await controller.create_booking(
            "svc-001", priya_id, _details(valid_details, contact_phone="9876543210")
        )
        await controller.outbox.join()

        assert receipt.booking.customer_phone == "+919876543210"

    async def test_all_errors_reported_together(self, controller, priya_id):
        with pytest.raises(ValidationError) as exc_info:
            await controller.create_booking("svc-001", priya_id, BookingDetails())

        assert exc_info.value.errors == [
            "Event date is required",
            "Event time is required",
            "Event location is required",
            "Contact phone is required",
            "Contact email is required",
        ]

    async def test_validation_runs_before_lookups(self, controller, priya_id):
        """Bad input to an unknown service is still a ValidationError."""
        with pytest.raises(ValidationError):
            await controller.create_booking("svc-missing", priya_id, BookingDetails())


class TestReferenceChecks:
    """Service and customer checks."""

    async def test_unknown_service(self, controller, valid_details, priya_id):
        with pytest.raises(NotFound):
            await controller.create_booking("svc-missing", priya_id, valid_details)

    async def test_unknown_customer(self, controller, valid_details):
        with pytest.raises(NotFound):
            await controller.create_booking("svc-001", "cust-missing", valid_details)

    async def test_inactive_service(self, controller, store, valid_details, priya_id):
        with pytest.raises(InvalidState):
            await controller.create_booking("svc-003", priya_id, valid_details)

        assert store.store.writes_to(BOOKINGS) == []

    async def test_vendor_cannot_book_own_service(self, controller, valid_details, royal_id):
        with pytest.raises(Unauthorized):
            await controller.create_booking("svc-001", royal_id, valid_details)

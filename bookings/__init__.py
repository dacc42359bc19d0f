"""
Booking workflow: state machine, validation, lifecycle controller and outbox.
"""

from bookings.lifecycle import BookingLifecycleController, BookingReceipt
from bookings.outbox import Outbox, OutboxEntry, OutboxStatus
from bookings.state import BookingDecision, ensure_transition
from bookings.validation import BookingDetails, validate_booking_details

__all__ = [
    "BookingLifecycleController",
    "BookingReceipt",
    "BookingDecision",
    "ensure_transition",
    "BookingDetails",
    "validate_booking_details",
    "Outbox",
    "OutboxEntry",
    "OutboxStatus",
]

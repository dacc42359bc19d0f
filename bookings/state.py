"""
Booking status transitions.

    pending ──accept──> confirmed ──(completion)──> completed
       │
       └────reject────> cancelled

cancelled and completed are terminal. Nothing ever returns to pending.
"""

from enum import Enum

from shared.errors import InvalidState
from shared.models import BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class BookingDecision(str, Enum):
    """A vendor's answer to a pending booking request."""
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def target_status(self) -> BookingStatus:
        if self is BookingDecision.ACCEPT:
            return BookingStatus.CONFIRMED
        return BookingStatus.CANCELLED


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidState unless current -> target is a defined transition."""
    if not can_transition(current, target):
        raise InvalidState(
            f"Cannot move booking from '{BookingStatus(current).value}' "
            f"to '{BookingStatus(target).value}'"
        )

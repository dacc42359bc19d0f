"""
Dashboard summaries over booking lists.

Pure functions: callers pass the bookings they already fetched (or got
from a live subscription) and get back the numbers the dashboards show.
"""

from datetime import date
from typing import Iterable, Optional, Union

from pydantic import BaseModel

from shared.models import Booking, BookingStatus


class VendorStats(BaseModel):
    total_bookings: int = 0
    pending_requests: int = 0
    revenue: int = 0
    average_rating: Optional[float] = None


class CustomerStats(BaseModel):
    total_bookings: int = 0
    upcoming_events: int = 0
    reviews_given: int = 0


def _status(booking: Booking) -> BookingStatus:
    return BookingStatus(booking.status)


def vendor_stats(bookings: Iterable[Booking]) -> VendorStats:
    """
    Totals for a vendor dashboard.

    Revenue counts completed bookings only. The average rating covers
    bookings that carry a rating and is rounded to one decimal.
    """
    bookings = list(bookings)
    ratings = [b.rating for b in bookings if b.rating is not None]
    return VendorStats(
        total_bookings=len(bookings),
        pending_requests=sum(1 for b in bookings if _status(b) == BookingStatus.PENDING),
        revenue=sum(b.total_amount for b in bookings if _status(b) == BookingStatus.COMPLETED),
        average_rating=round(sum(ratings) / len(ratings), 1) if ratings else None,
    )


def customer_stats(bookings: Iterable[Booking], today: date) -> CustomerStats:
    """Totals for a customer dashboard; upcoming means confirmed and not yet past."""
    bookings = list(bookings)
    return CustomerStats(
        total_bookings=len(bookings),
        upcoming_events=sum(
            1 for b in bookings
            if _status(b) == BookingStatus.CONFIRMED and b.event_date >= today
        ),
        reviews_given=sum(1 for b in bookings if b.review_given),
    )


def filter_by_status(
    bookings: Iterable[Booking],
    status: Union[BookingStatus, str] = "all",
) -> list[Booking]:
    """Bookings with the given status; "all" keeps everything."""
    if status == "all":
        return list(bookings)
    wanted = BookingStatus(status)
    return [b for b in bookings if _status(b) == wanted]

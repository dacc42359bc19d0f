"""
Booking form validation.

Checks the customer-entered details before anything is written, collecting
every problem so the form can show them together.
"""

from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import Field

from shared.errors import ValidationError
from shared.models import Document
from shared.validators import is_valid_email, is_valid_local_phone, normalize_phone


class BookingDetails(Document):
    """
    Raw booking form input.

    Fields are loose on purpose: they are what the customer typed, and
    validate_booking_details() turns them into a ValidBookingDetails.
    """
    event_date: Optional[Union[date, str]] = None
    event_time: Optional[Union[time, str]] = None
    event_location: Optional[str] = None
    guest_count: Optional[Union[int, str]] = None
    special_requests: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class ValidBookingDetails(Document):
    """Booking details after validation and normalization."""
    event_date: date
    event_time: time
    event_location: str
    guest_count: int = Field(default=0, ge=0)
    special_requests: str = ""
    contact_phone: str
    contact_email: str


def _parse_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _parse_time(value) -> Optional[time]:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def _parse_guest_count(value) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = str(value).strip()
    if not text.isdigit():
        return None
    return int(text)


def validate_booking_details(
    details: BookingDetails,
    today: date,
    country_code: str = "+91",
) -> ValidBookingDetails:
    """
    Validate and normalize booking form input.

    Args:
        details: What the customer entered
        today: Earliest acceptable event date
        country_code: Phone prefix stripped before the 10-digit check and
                      prepended to the stored number

    Returns:
        ValidBookingDetails with a parsed date/time, an integer guest count
        and the phone in stored form

    Raises:
        ValidationError: Listing every failed check
    """
    errors: list[str] = []

    event_date = None
    if details.event_date in (None, ""):
        errors.append("Event date is required")
    else:
        event_date = _parse_date(details.event_date)
        if event_date is None:
            errors.append("Event date must be a valid date (YYYY-MM-DD)")
        elif event_date < today:
            errors.append("Event date cannot be in the past")

    event_time = None
    if details.event_time in (None, ""):
        errors.append("Event time is required")
    else:
        event_time = _parse_time(details.event_time)
        if event_time is None:
            errors.append("Event time must be HH:MM")

    location = (details.event_location or "").strip()
    if not location:
        errors.append("Event location is required")

    guest_count = _parse_guest_count(details.guest_count)
    if guest_count is None:
        errors.append("Guest count must be a non-negative whole number")

    phone = (details.contact_phone or "").strip()
    if not phone:
        errors.append("Contact phone is required")
    elif not is_valid_local_phone(phone, country_code):
        errors.append("Please enter a valid 10-digit phone number")

    email = (details.contact_email or "").strip()
    if not email:
        errors.append("Contact email is required")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")

    if errors:
        raise ValidationError(errors)

    return ValidBookingDetails(
        event_date=event_date,
        event_time=event_time,
        event_location=location,
        guest_count=guest_count,
        special_requests=(details.special_requests or "").strip(),
        contact_phone=normalize_phone(phone, country_code),
        contact_email=email,
    )

"""
Notification payloads and dispatch reports.

Every notification carries a small data bag so the recipient's client can
deep-link to the right booking. Instead of an open dict, each booking event
has its own payload type with exactly the fields it needs, tagged by "type"
so stored bags validate back into the right class.

Design decisions:
- A closed set of variants; branching on a payload covers them all
- camelCase aliases, so the stored bag reads bookingId/serviceId/...
- DispatchReport says what notify() actually did, per channel
"""

from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from shared.models import Document, NotificationPriority
from shared.templates import NotificationType


# =============================================================================
# Payload variants
# =============================================================================

class BookingRequested(Document):
    """A customer asked a vendor for a service. Sent to the vendor."""
    type: Literal["booking_request"] = "booking_request"
    booking_id: str
    service_id: str
    service_name: str
    customer_id: str
    customer_name: str
    event_date: date
    priority: NotificationPriority = NotificationPriority.NORMAL


class BookingConfirmed(Document):
    """The vendor accepted. Sent to the customer."""
    type: Literal["booking_confirmed"] = "booking_confirmed"
    booking_id: str
    service_id: str
    service_name: str
    event_date: date
    priority: NotificationPriority = NotificationPriority.HIGH


class BookingCancelled(Document):
    """The vendor declined. Sent to the customer."""
    type: Literal["booking_cancelled"] = "booking_cancelled"
    booking_id: str
    service_id: str
    service_name: str
    event_date: date
    priority: NotificationPriority = NotificationPriority.HIGH


NotificationPayload = Annotated[
    Union[BookingRequested, BookingConfirmed, BookingCancelled],
    Field(discriminator="type"),
]

_payload_adapter = TypeAdapter(NotificationPayload)


def parse_payload(data: dict) -> Union[BookingRequested, BookingConfirmed, BookingCancelled]:
    """Validate a stored data bag back into its payload variant."""
    return _payload_adapter.validate_python(data)


def payload_type(payload: Optional[Document]) -> NotificationType:
    """Template type for a payload; GENERAL when there is none."""
    if payload is None:
        return NotificationType.GENERAL
    return NotificationType(payload.type)


def payload_data(payload: Optional[Document]) -> dict:
    """Payload as a JSON-safe, camelCase data bag."""
    if payload is None:
        return {}
    return payload.model_dump(by_alias=True, mode="json")


# =============================================================================
# Dispatch reports
# =============================================================================

class ChannelOutcome(BaseModel):
    """What happened on one channel during a notify() call."""
    channel: str
    attempted: bool = False
    delivered: bool = False
    error: Optional[str] = None


class DispatchReport(BaseModel):
    """
    Result of one notify() call.

    skipped means the recipient has opted out and nothing was written.
    """
    recipient_id: str
    notification_id: Optional[str] = None
    skipped: bool = False
    push: ChannelOutcome = Field(default_factory=lambda: ChannelOutcome(channel="push"))
    email: ChannelOutcome = Field(default_factory=lambda: ChannelOutcome(channel="email"))

    @property
    def delivered_channels(self) -> list[str]:
        return [o.channel for o in (self.push, self.email) if o.delivered]

"""
Domain models for the event marketplace.

These are the records the booking workflow reads and writes: users,
vendor services, bookings and customer-facing notifications.

Design decisions:
- Using Pydantic for validation and serialization
- Attributes are snake_case in Python, camelCase in stored documents
  (alias generator), so records round-trip with the document store unchanged
- Money is an integer amount in minor currency units
- Ids are assigned by the store and are optional on the model
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================

class UserRole(str, Enum):
    """Who a user is on the marketplace; gates which mutations they may request."""
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


class BookingStatus(str, Enum):
    """
    Booking lifecycle states.

    pending -> confirmed | cancelled (vendor decision)
    confirmed -> completed (external completion event)
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ServiceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NotificationPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


# =============================================================================
# Base
# =============================================================================

class Document(BaseModel):
    """
    Base for every stored record.

    Subclasses validate straight from a store document (camelCase keys) and
    dump back to one with to_document().
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Dump to a store document: camelCase keys, no id."""
        return self.model_dump(by_alias=True, exclude={"id"})


# =============================================================================
# Core Domain Models
# =============================================================================

class User(Document):
    """
    Profile record kept alongside the identity provider's account.

    The dispatcher reads notifications_enabled, fcm_token and email to decide
    which channels to try.
    """
    id: Optional[str] = None
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="Address for email notifications")
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    profile_completed: bool = False
    notifications_enabled: Optional[bool] = Field(
        default=None,
        description="Only an explicit False opts the user out",
    )
    fcm_token: Optional[str] = Field(default=None, description="Push delivery token")
    unread_notifications: int = Field(default=0, ge=0)
    last_notification_at: Optional[datetime] = None


class Location(BaseModel):
    lat: float
    lng: float
    address: str


class Service(Document):
    """A vendor's offering. Read-only from the booking workflow's perspective."""
    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    price: int = Field(..., ge=0, description="Price in minor currency units")
    vendor_id: str
    vendor_name: str
    category: str
    status: ServiceStatus = ServiceStatus.ACTIVE
    images: list[str] = Field(default_factory=list)
    location: Optional[Location] = None
    created_at: Optional[datetime] = None


class Booking(Document):
    """
    One customer's request to engage a vendor's service for an event.

    service_name and service_price are copied from the service when the
    booking is created; total_amount equals service_price and never changes
    through the lifecycle controller.
    """
    id: Optional[str] = None
    service_id: str
    service_name: str
    service_price: int = Field(..., ge=0)
    vendor_id: str
    vendor_name: str
    customer_id: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    event_date: date
    event_time: time
    event_location: str
    guest_count: int = Field(default=0, ge=0)
    special_requests: str = ""
    status: BookingStatus = BookingStatus.PENDING
    total_amount: int = Field(..., ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    action_timestamp: Optional[datetime] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_given: bool = False


class Notification(Document):
    """
    Durable trace of a customer- or vendor-facing message.

    Written whether or not push delivery later succeeds. Only the
    recipient ever changes it, by marking it read.
    """
    id: Optional[str] = None
    recipient_id: str
    sender_id: Optional[str] = None
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None
    type: str = "general"
    priority: NotificationPriority = NotificationPriority.NORMAL

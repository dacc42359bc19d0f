"""
Shared infrastructure for the booking workflow.

This package contains code used by both the booking and notification packages:
- Domain models (User, Service, Booking, Notification)
- Document store collaborator and the typed marketplace store
- Push and email delivery channels
- Notification templates
- Errors, settings and logging setup
"""

from shared.models import (
    Booking,
    BookingStatus,
    Location,
    Notification,
    NotificationPriority,
    Service,
    ServiceStatus,
    User,
    UserRole,
)
from shared.data_store import MarketplaceStore
from shared.document_store import SERVER_TIMESTAMP, DocumentStore, Increment
from shared.channels import EmailChannel, NotificationChannels, NotificationResult, PushChannel

__all__ = [
    "Booking",
    "BookingStatus",
    "Location",
    "Notification",
    "NotificationPriority",
    "Service",
    "ServiceStatus",
    "User",
    "UserRole",
    "MarketplaceStore",
    "DocumentStore",
    "SERVER_TIMESTAMP",
    "Increment",
    "EmailChannel",
    "PushChannel",
    "NotificationChannels",
    "NotificationResult",
]

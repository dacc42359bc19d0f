"""
Notification fan-out: payloads, the dispatcher and the recipient inbox.
"""

from notifications.dispatcher import NotificationDispatcher
from notifications.inbox import NotificationInbox
from notifications.models import (
    BookingCancelled,
    BookingConfirmed,
    BookingRequested,
    ChannelOutcome,
    DispatchReport,
    NotificationPayload,
    parse_payload,
)

__all__ = [
    "NotificationDispatcher",
    "NotificationInbox",
    "BookingRequested",
    "BookingConfirmed",
    "BookingCancelled",
    "NotificationPayload",
    "parse_payload",
    "ChannelOutcome",
    "DispatchReport",
]

"""
Notification message templates.

Each booking notification type has a push variant (short title + one-line
body, also used for the in-app notification record) and an email variant
(subject + longer body).

Design decisions:
- Templates are plain strings with {variable} placeholders
- The brand name is a placeholder too, filled from settings by the caller
- Types without a template (e.g. "general") fall back to caller-provided text
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    """Business events that produce a notification."""
    BOOKING_REQUEST = "booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    GENERAL = "general"


@dataclass
class NotificationTemplate:
    """A notification template with push and email variants."""
    notification_type: NotificationType
    push_title: str
    push_body: str
    email_subject: str
    email_body: str

    def render_push(self, **kwargs) -> tuple[str, str]:
        """Returns (title, body)."""
        return (
            self.push_title.format(**kwargs),
            self.push_body.format(**kwargs),
        )

    def render_email(self, **kwargs) -> tuple[str, str]:
        """Returns (subject, body)."""
        return (
            self.email_subject.format(**kwargs),
            self.email_body.format(**kwargs),
        )


# =============================================================================
# Template Definitions
# =============================================================================

TEMPLATES: dict[NotificationType, NotificationTemplate] = {

    NotificationType.BOOKING_REQUEST: NotificationTemplate(
        notification_type=NotificationType.BOOKING_REQUEST,
        push_title="New Booking Request",
        push_body="New booking request from {customer_name} for {service_name}",
        email_subject="New Booking Request - {app_name}",
        email_body="""Hi {recipient_name},

You have a new booking request from {customer_name} for {service_name} on {event_date}.

Open your dashboard to accept or decline it.

- The {app_name} team
""",
    ),

    NotificationType.BOOKING_CONFIRMED: NotificationTemplate(
        notification_type=NotificationType.BOOKING_CONFIRMED,
        push_title="Booking Confirmed",
        push_body="Your booking for {service_name} has been confirmed!",
        email_subject="Booking Confirmed - {app_name}",
        email_body="""Hi {recipient_name},

Your booking for {service_name} on {event_date} has been confirmed!

Payment instructions will follow by email.

- The {app_name} team
""",
    ),

    NotificationType.BOOKING_CANCELLED: NotificationTemplate(
        notification_type=NotificationType.BOOKING_CANCELLED,
        push_title="Booking Cancelled",
        push_body="Your booking for {service_name} has been cancelled.",
        email_subject="Booking Update - {app_name}",
        email_body="""Hi {recipient_name},

Unfortunately, your booking request for {service_name} on {event_date} has been declined.

You can browse other vendors and send a new request at any time.

- The {app_name} team
""",
    ),
}


# =============================================================================
# Template Access Functions
# =============================================================================

def get_template(notification_type: NotificationType) -> Optional[NotificationTemplate]:
    """Get a template by notification type."""
    return TEMPLATES.get(notification_type)


def render_notification(
    notification_type: NotificationType,
    channel: str,
    **context
) -> tuple[str, str]:
    """
    Render a notification for a specific channel.

    Args:
        notification_type: The type of notification
        channel: "push" or "email"
        **context: Variables to substitute in the template

    Returns:
        For push: (title, body)
        For email: (subject, body)

    Raises:
        ValueError: If template not found or channel invalid
    """
    template = get_template(notification_type)
    if not template:
        raise ValueError(f"No template found for notification type: {notification_type}")

    if channel == "push":
        return template.render_push(**context)
    elif channel == "email":
        return template.render_email(**context)
    else:
        raise ValueError(f"Unknown channel: {channel}")

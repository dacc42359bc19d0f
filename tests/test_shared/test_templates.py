"""
Tests for notification templates.

These tests verify that booking templates render correctly for the
push and email channels.
"""

import pytest

from shared.templates import (
    TEMPLATES,
    NotificationType,
    get_template,
    render_notification,
)


class TestTemplates:
    """Tests for template definitions."""

    def test_every_booking_type_has_a_template(self):
        for notification_type in (
            NotificationType.BOOKING_REQUEST,
            NotificationType.BOOKING_CONFIRMED,
            NotificationType.BOOKING_CANCELLED,
        ):
            assert notification_type in TEMPLATES

    def test_general_has_no_template(self):
        """General notifications carry caller-provided text."""
        assert get_template(NotificationType.GENERAL) is None


class TestRendering:
    """Tests for render_notification."""

    def test_booking_request_push(self):
        title, body = render_notification(
            NotificationType.BOOKING_REQUEST,
            "push",
            customer_name="Priya Sharma",
            service_name="Royal Wedding Buffet",
        )

        assert title == "New Booking Request"
        assert body == "New booking request from Priya Sharma for Royal Wedding Buffet"

    def test_confirmed_push(self):
        title, body = render_notification(
            NotificationType.BOOKING_CONFIRMED, "push", service_name="Candid Wedding Photography"
        )

        assert title == "Booking Confirmed"
        assert body == "Your booking for Candid Wedding Photography has been confirmed!"

    def test_cancelled_email_mentions_decline(self):
        subject, body = render_notification(
            NotificationType.BOOKING_CANCELLED,
            "email",
            recipient_name="Neha",
            service_name="Floral Stage Decoration",
            event_date="2026-12-01",
            app_name="DreamEvents",
        )

        assert subject == "Booking Update - DreamEvents"
        assert "Hi Neha" in body
        assert "has been declined" in body
        assert "2026-12-01" in body

    def test_unknown_channel_raises(self):
        with pytest.raises(ValueError, match="Unknown channel"):
            render_notification(NotificationType.BOOKING_CONFIRMED, "sms", service_name="x")

    def test_missing_template_raises(self):
        with pytest.raises(ValueError, match="No template"):
            render_notification(NotificationType.GENERAL, "push")

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            render_notification(NotificationType.BOOKING_REQUEST, "push", service_name="x")

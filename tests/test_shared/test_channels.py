"""
Tests for notification channels.

These tests verify that the mock push and email channels record every
attempt, that simulated failures raise DeliveryFailure, and that the
HTTP push channel speaks the expected JSON shape.
"""

import json

import httpx
import pytest

from shared.channels import (
    ChannelType,
    EmailChannel,
    HttpPushChannel,
    NotificationChannels,
    PushChannel,
)
from shared.errors import DeliveryFailure


class TestPushChannel:
    """Tests for the mock push channel."""

    async def test_send_push_success(self, push_channel: PushChannel):
        result = await push_channel.send(
            "fcm-token-abc", "Booking Confirmed", "Your booking is confirmed", {"bookingId": "b1"}
        )

        assert result.success is True
        assert result.channel == ChannelType.PUSH
        assert result.recipient == "fcm-token-abc"
        assert result.data == {"bookingId": "b1"}
        assert push_channel.get_sent_count() == 1

    async def test_simulated_failure_raises_and_records(self):
        """Test that a failed push is recorded before DeliveryFailure is raised."""
        channel = PushChannel(fail_rate=1.0)

        with pytest.raises(DeliveryFailure) as exc_info:
            await channel.send("fcm-token-abc", "Title", "Body")

        assert exc_info.value.channel == "push"
        assert channel.get_sent_count() == 1
        assert channel.get_successful_sends() == []
        assert channel.sent_messages[0].error is not None


class TestEmailChannel:
    """Tests for the mock email channel."""

    async def test_send_email_success(self, email_channel: EmailChannel):
        result = await email_channel.send("test@example.com", "Test Subject", "Test body content")

        assert result.success is True
        assert result.channel == ChannelType.EMAIL
        assert result.subject == "Test Subject"
        assert result.error is None

    async def test_find_message_to(self, email_channel: EmailChannel):
        await email_channel.send("target@example.com", "Hello", "World")
        await email_channel.send("other@example.com", "Hi", "There")

        found = email_channel.find_message_to("target@example.com")

        assert found is not None
        assert found.subject == "Hello"

    async def test_clear_history(self, email_channel: EmailChannel):
        await email_channel.send("test@example.com", "Test", "Body")

        email_channel.clear_history()

        assert email_channel.get_sent_count() == 0

    async def test_simulated_failure(self):
        channel = EmailChannel(fail_rate=1.0)

        with pytest.raises(DeliveryFailure) as exc_info:
            await channel.send("test@example.com", "Test", "Body")

        assert exc_info.value.channel == "email"
        assert channel.sent_messages[0].success is False


class TestHttpPushChannel:
    """Tests for the HTTP-backed push channel."""

    async def test_posts_token_notification_and_string_data(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"name": "msg-1"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        channel = HttpPushChannel("https://push.example/send", client=client)

        result = await channel.send("tok-1", "Title", "Body", {"bookingId": "b1", "count": 3})

        assert result.success is True
        assert requests == [{
            "token": "tok-1",
            "notification": {"title": "Title", "body": "Body"},
            "data": {"bookingId": "b1", "count": "3"},
        }]
        await channel.close()

    async def test_error_status_raises_delivery_failure(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )
        channel = HttpPushChannel("https://push.example/send", client=client)

        with pytest.raises(DeliveryFailure) as exc_info:
            await channel.send("tok-1", "Title", "Body")

        assert "500" in exc_info.value.reason
        assert channel.get_successful_sends() == []

    async def test_unreachable_endpoint_raises_delivery_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        channel = HttpPushChannel("https://push.example/send", client=client)

        with pytest.raises(DeliveryFailure):
            await channel.send("tok-1", "Title", "Body")


class TestNotificationChannels:
    """Tests for the channels facade."""

    async def test_tracks_both_channels(self, channels: NotificationChannels):
        await channels.send_push("tok-1", "Title", "Body")
        await channels.send_email("a@example.com", "Subject", "Body")

        assert channels.get_total_sent_count() == 2
        assert {m.channel for m in channels.get_all_sent_messages()} == {
            ChannelType.PUSH, ChannelType.EMAIL,
        }

    async def test_clear_all_history(self, channels: NotificationChannels):
        await channels.send_push("tok-1", "Title", "Body")

        channels.clear_all_history()

        assert channels.get_total_sent_count() == 0

    def test_default_fail_rates(self):
        channels = NotificationChannels(push_fail_rate=1.0, email_fail_rate=0.5)

        assert channels.push.fail_rate == 1.0
        assert channels.email.fail_rate == 0.5

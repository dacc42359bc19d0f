"""
Notification delivery channels.

The dispatcher reaches customers through two independent channels:
- Push: a device token plus title/body/data, delivered by a push service
- Email: an address plus subject/body

PushChannel and EmailChannel are logging stand-ins that record every
attempt for test assertions. HttpPushChannel forwards pushes to a real
push-sending endpoint over HTTP.

Design decisions:
- All sends are logged for visibility
- Channels track sent messages for test assertions
- A failed send is recorded, then raised as DeliveryFailure; the caller
  decides whether that matters
- Channel failures can be simulated for testing
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import httpx

from shared.errors import DeliveryFailure

logger = logging.getLogger("channels")


class ChannelType(str, Enum):
    """Supported notification channels."""
    PUSH = "push"
    EMAIL = "email"


@dataclass
class NotificationResult:
    """
    Result of a single send attempt.

    Captures success/failure and metadata for debugging and testing.
    """
    success: bool
    channel: ChannelType
    recipient: str
    subject: Optional[str]
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        if self.channel == ChannelType.EMAIL:
            return f"{status} EMAIL to {self.recipient}: {self.subject}"
        return f"{status} PUSH to {self.recipient[:12]}: {self.subject}"


class _RecordingChannel:
    """Message history shared by the concrete channels."""

    def __init__(self):
        self.sent_messages: list[NotificationResult] = []

    def get_sent_count(self) -> int:
        """Get the number of attempts made (for testing)."""
        return len(self.sent_messages)

    def get_successful_sends(self) -> list[NotificationResult]:
        return [m for m in self.sent_messages if m.success]

    def clear_history(self):
        self.sent_messages.clear()

    def find_message_to(self, recipient: str) -> Optional[NotificationResult]:
        """Find the first message sent to a specific recipient."""
        for msg in self.sent_messages:
            if msg.recipient == recipient:
                return msg
        return None


class PushChannel(_RecordingChannel):
    """
    Mock push channel.

    Logs pushes and tracks them for test assertions.
    Can simulate failures for testing error handling.
    """

    def __init__(self, fail_rate: float = 0.0):
        """
        Args:
            fail_rate: Probability of send failure (0.0 to 1.0), for testing.
        """
        super().__init__()
        self.fail_rate = fail_rate

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        """
        Send a push notification (mock implementation).

        Raises:
            DeliveryFailure: If the (simulated) delivery fails
        """
        if random.random() < self.fail_rate:
            return self._failed(token, title, body, data, "Simulated push delivery failure")

        result = NotificationResult(
            success=True,
            channel=ChannelType.PUSH,
            recipient=token,
            subject=title,
            body=body,
            data=dict(data or {}),
        )
        logger.info(f"[PUSH] Token: {token[:12]}... | Title: {title}")
        self.sent_messages.append(result)
        return result

    def _failed(self, token, title, body, data, error: str) -> NotificationResult:
        result = NotificationResult(
            success=False,
            channel=ChannelType.PUSH,
            recipient=token,
            subject=title,
            body=body,
            data=dict(data or {}),
            error=error,
        )
        self.sent_messages.append(result)
        logger.error(f"[PUSH FAILED] Token: {token[:12]}... | Error: {error}")
        raise DeliveryFailure(ChannelType.PUSH.value, error)


class HttpPushChannel(PushChannel):
    """
    Push channel backed by an HTTP push-sending endpoint.

    Posts {token, notification: {title, body}, data} as JSON. Data values
    are stringified since push payload data must be string-to-string.
    """

    def __init__(self, endpoint_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        super().__init__()
        self.endpoint_url = endpoint_url
        self._client = client
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> NotificationResult:
        payload = {
            "token": token,
            "notification": {"title": title, "body": body},
            "data": {k: str(v) for k, v in (data or {}).items()},
        }
        try:
            response = await self.client.post(self.endpoint_url, json=payload)
        except httpx.HTTPError as e:
            return self._failed(token, title, body, data, f"Push endpoint unreachable: {e}")

        if response.is_error:
            return self._failed(
                token, title, body, data, f"Push endpoint returned {response.status_code}"
            )

        result = NotificationResult(
            success=True,
            channel=ChannelType.PUSH,
            recipient=token,
            subject=title,
            body=body,
            data=payload["data"],
        )
        logger.info(f"[PUSH] Token: {token[:12]}... | Title: {title} | HTTP {response.status_code}")
        self.sent_messages.append(result)
        return result


class EmailChannel(_RecordingChannel):
    """
    Mock email channel.

    Stands in for a transactional mail service: logs the message and tracks
    it for test assertions.
    """

    def __init__(
        self,
        fail_rate: float = 0.0,
        from_addr: str = "notifications@dreamevents.example",
        delay_seconds: float = 0.0,
    ):
        """
        Args:
            fail_rate: Probability of send failure (0.0 to 1.0), for testing.
            from_addr: Sender address (for logging)
            delay_seconds: Simulated network latency per send
        """
        super().__init__()
        self.fail_rate = fail_rate
        self.from_addr = from_addr
        self.delay_seconds = delay_seconds

    async def send(self, to: str, subject: str, body: str) -> NotificationResult:
        """
        Send an email (mock implementation).

        Raises:
            DeliveryFailure: If the (simulated) delivery fails
        """
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if random.random() < self.fail_rate:
            result = NotificationResult(
                success=False,
                channel=ChannelType.EMAIL,
                recipient=to,
                subject=subject,
                body=body,
                error="Simulated email delivery failure",
            )
            self.sent_messages.append(result)
            logger.error(f"[EMAIL FAILED] To: {to} | Subject: {subject} | Error: {result.error}")
            raise DeliveryFailure(ChannelType.EMAIL.value, result.error)

        result = NotificationResult(
            success=True,
            channel=ChannelType.EMAIL,
            recipient=to,
            subject=subject,
            body=body,
        )
        logger.info(f"[EMAIL] From: {self.from_addr} | To: {to} | Subject: {subject}")
        logger.debug(f"[EMAIL BODY] {body}")
        self.sent_messages.append(result)
        return result


class NotificationChannels:
    """
    Facade for the push and email channels.

    The dispatcher only ever talks to this object.
    """

    def __init__(
        self,
        push: Optional[PushChannel] = None,
        email: Optional[EmailChannel] = None,
        push_fail_rate: float = 0.0,
        email_fail_rate: float = 0.0,
    ):
        """
        Args:
            push: Push channel to use (defaults to the logging mock)
            email: Email channel to use (defaults to the logging mock)
            push_fail_rate: Simulated failure rate for the default push mock
            email_fail_rate: Simulated failure rate for the default email mock
        """
        self.push = push or PushChannel(fail_rate=push_fail_rate)
        self.email = email or EmailChannel(fail_rate=email_fail_rate)

    async def send_push(
        self, token: str, title: str, body: str, data: Optional[dict[str, Any]] = None
    ) -> NotificationResult:
        return await self.push.send(token, title, body, data)

    async def send_email(self, to: str, subject: str, body: str) -> NotificationResult:
        return await self.email.send(to, subject, body)

    def get_all_sent_messages(self) -> list[NotificationResult]:
        """Get all attempts across both channels."""
        return self.push.sent_messages + self.email.sent_messages

    def get_total_sent_count(self) -> int:
        return self.push.get_sent_count() + self.email.get_sent_count()

    def clear_all_history(self):
        self.push.clear_history()
        self.email.clear_history()

"""
Notification Dispatcher.

Best-effort delivery of one event to one user over two independent
channels, behind a durable notification record.

Order of work inside notify():
1. Look up the recipient (missing recipient is a data-integrity error)
2. Stop if the recipient has explicitly opted out
3. Persist the notification record, retrying transient store errors
4. Push, if the recipient has a delivery token
5. Email, if the recipient has an address
6. Bump the recipient's unread counter

Design decisions:
- Steps 1 and 3 are the only ones that raise; a channel failure is logged
  and shows up in the DispatchReport instead
- Push and email run one after the other, never concurrently
- Only the record write is retried, and only for transient store errors;
  permission-denied and other permanent codes fail on the first attempt
- The sleep used between retries is injectable so tests run instantly
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from shared.channels import NotificationChannels
from shared.config import Settings, get_settings
from shared.data_store import MarketplaceStore
from shared.document_store import SERVER_TIMESTAMP
from shared.errors import RecipientNotFound, StoreError
from shared.models import Document, NotificationPriority, User
from shared.templates import NotificationType, render_notification
from notifications.models import DispatchReport, payload_data, payload_type

logger = logging.getLogger("notification_dispatcher")

CLICK_ACTION = "OPEN_NOTIFICATION"


def is_transient_store_error(exc: BaseException) -> bool:
    """Retry predicate: only store errors tagged transient."""
    return isinstance(exc, StoreError) and exc.is_transient


class NotificationDispatcher:
    """
    Sends a notification to a user through the in-app record, push and email.

    Example:
        dispatcher = NotificationDispatcher(data, channels)
        report = await dispatcher.notify(
            "cust-001", "Booking Confirmed", "Your booking has been confirmed!",
            payload=BookingConfirmed(...),
        )
    """

    def __init__(
        self,
        data: MarketplaceStore,
        channels: NotificationChannels,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            data: Marketplace store for users and notification records
            channels: Push and email channels
            settings: Retry and branding settings (defaults to get_settings())
            sleep: Awaitable used between write retries
        """
        self.data = data
        self.channels = channels
        self.settings = settings or get_settings()
        self._sleep = sleep

    async def notify(
        self,
        recipient_id: str,
        title: str,
        body: str,
        payload: Optional[Document] = None,
        sender_id: Optional[str] = None,
    ) -> DispatchReport:
        """
        Notify one user.

        Args:
            recipient_id: User to notify
            title: In-app and push title
            body: In-app and push body
            payload: Booking event payload (BookingRequested, BookingConfirmed, ...)
            sender_id: User whose action caused the notification

        Returns:
            DispatchReport describing what was written and delivered

        Raises:
            RecipientNotFound: If the recipient has no profile record
            StoreError: If the notification record could not be written
        """
        recipient = await self.data.get_user(recipient_id)
        if recipient is None:
            raise RecipientNotFound(recipient_id)

        report = DispatchReport(recipient_id=recipient_id)

        if recipient.notifications_enabled is False:
            logger.info(f"Notifications disabled for {recipient_id}, skipping")
            report.skipped = True
            return report

        notification_type = payload_type(payload)
        data = payload_data(payload)
        data["timestamp"] = int(self.data.now().timestamp() * 1000)
        data["senderId"] = sender_id
        data["notificationType"] = notification_type.value
        priority = getattr(payload, "priority", None) or NotificationPriority.NORMAL

        document = {
            "recipientId": recipient_id,
            "senderId": sender_id,
            "title": title,
            "body": body,
            "data": data,
            "read": False,
            "createdAt": SERVER_TIMESTAMP,
            "type": notification_type.value,
            "priority": NotificationPriority(priority).value,
        }
        notification_id = await self._write_notification(document)
        report.notification_id = notification_id
        logger.info(f"Notification {notification_id} recorded for {recipient_id}: {title}")

        if recipient.fcm_token:
            await self._send_push(recipient, title, body, data, notification_id, report)
        else:
            logger.debug(f"No push token for {recipient_id}")

        if recipient.email:
            await self._send_email(recipient, title, body, notification_type, payload, report)
        else:
            logger.debug(f"No email address for {recipient_id}")

        try:
            await self.data.increment_unread(recipient_id)
        except StoreError as e:
            logger.error(f"Failed to bump unread counter for {recipient_id}: {e}")

        return report

    # =========================================================================
    # Steps
    # =========================================================================

    async def _write_notification(self, document: dict[str, Any]) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.NOTIFICATION_WRITE_ATTEMPTS),
            wait=wait_exponential(multiplier=self.settings.NOTIFICATION_RETRY_BASE_SECONDS),
            retry=retry_if_exception(is_transient_store_error),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.data.add_notification(document)

    async def _send_push(
        self,
        recipient: User,
        title: str,
        body: str,
        data: dict[str, Any],
        notification_id: str,
        report: DispatchReport,
    ) -> None:
        report.push.attempted = True
        push_data = dict(data)
        push_data["notificationId"] = notification_id
        push_data["clickAction"] = CLICK_ACTION
        try:
            await self.channels.send_push(recipient.fcm_token, title, body, push_data)
            report.push.delivered = True
        except Exception as e:
            report.push.error = str(e)
            logger.warning(f"Push to {recipient.id} failed: {e}")

    async def _send_email(
        self,
        recipient: User,
        title: str,
        body: str,
        notification_type: NotificationType,
        payload: Optional[Document],
        report: DispatchReport,
    ) -> None:
        report.email.attempted = True
        subject, text = self._render_email(recipient, title, body, notification_type, payload)
        try:
            await self.channels.send_email(recipient.email, subject, text)
            report.email.delivered = True
        except Exception as e:
            report.email.error = str(e)
            logger.warning(f"Email to {recipient.email} failed: {e}")

    def _render_email(
        self,
        recipient: User,
        title: str,
        body: str,
        notification_type: NotificationType,
        payload: Optional[Document],
    ) -> tuple[str, str]:
        """Template text for booking payloads, the raw title/body otherwise."""
        if payload is None or notification_type == NotificationType.GENERAL:
            return title, body
        context = payload.model_dump()
        context["recipient_name"] = recipient.name
        context["app_name"] = self.settings.APP_NAME
        return render_notification(notification_type, "email", **context)

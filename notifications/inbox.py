"""
Notification inbox: the recipient's side of notification records.

Backs the notification bell: list, live updates, unread count and
marking as read. Only the recipient ever changes a notification.
"""

import logging
from typing import Callable, Optional

from shared.data_store import MarketplaceStore
from shared.document_store import Subscription
from shared.errors import NotFound, Unauthorized
from shared.models import Notification

logger = logging.getLogger("notification_inbox")


class NotificationInbox:
    """Read and acknowledge a user's notifications."""

    def __init__(self, data: MarketplaceStore):
        self.data = data

    def watch(
        self,
        recipient_id: str,
        callback: Callable[[list[Notification]], None],
        limit: Optional[int] = None,
    ) -> Subscription:
        """Subscribe to a user's notifications; the callback gets the full list on every change."""
        return self.data.watch_notifications(recipient_id, callback, limit=limit)

    async def unread_count(self, recipient_id: str) -> int:
        return len(await self.data.notifications_for(recipient_id, unread_only=True))

    async def mark_read(self, notification_id: str, caller_id: str) -> Notification:
        """
        Mark one notification read.

        Raises:
            NotFound: If the notification does not exist
            Unauthorized: If the caller is not the recipient
        """
        notification = await self.data.get_notification(notification_id)
        if notification is None:
            raise NotFound("Notification", notification_id)
        if notification.recipient_id != caller_id:
            raise Unauthorized("Only the recipient can mark a notification read")

        if not notification.read:
            await self.data.update_notification(notification_id, {"read": True})
            await self._decrement_unread(caller_id, 1)
            notification.read = True
        return notification

    async def mark_all_read(self, recipient_id: str) -> int:
        """Mark every unread notification read. Returns how many changed."""
        unread = await self.data.notifications_for(recipient_id, unread_only=True)
        for notification in unread:
            await self.data.update_notification(notification.id, {"read": True})
        if unread:
            await self._decrement_unread(recipient_id, len(unread))
        logger.info(f"Marked {len(unread)} notifications read for {recipient_id}")
        return len(unread)

    async def _decrement_unread(self, user_id: str, amount: int) -> None:
        user = await self.data.get_user(user_id)
        if user is None:
            return
        # counter never goes below zero
        amount = min(amount, user.unread_notifications)
        if amount:
            await self.data.increment_unread(user_id, -amount)

    # shadows builtin list in the class body; keep last
    async def list(self, recipient_id: str, limit: Optional[int] = None) -> list[Notification]:
        """Notifications for a user, newest first."""
        return await self.data.notifications_for(recipient_id, limit=limit)

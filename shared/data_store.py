"""
Typed access to the marketplace collections.

MarketplaceStore wraps the document store and speaks in domain models:
users, services, bookings, notifications. The lifecycle controller, the
notification dispatcher and the inbox all go through it.

Design decisions:
- One store instance is constructed at startup and passed in explicitly;
  there is no module-level client handle
- Reads return models (or None); writes take camelCase document fields so
  callers can include SERVER_TIMESTAMP / Increment sentinels
- Fixture loading mirrors the JSON files under data/, used by the demo,
  the API and the tests
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from shared.document_store import SERVER_TIMESTAMP, DocumentStore, Increment, Subscription
from shared.models import Booking, BookingStatus, Notification, Service, User

logger = logging.getLogger("data_store")

USERS = "users"
SERVICES = "services"
BOOKINGS = "bookings"
NOTIFICATIONS = "notifications"
OUTBOX = "outbox"

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class MarketplaceStore:
    """
    Domain-level view of the document store.

    Example:
        data = MarketplaceStore.from_fixtures()
        booking = await data.get_booking("bkg-001")
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def now(self):
        """Current server time, from the underlying store's clock."""
        return self.store.now()

    # =========================================================================
    # Fixture Loading
    # =========================================================================

    @classmethod
    def from_fixtures(
        cls,
        data_dir: Optional[Path] = None,
        store: Optional[DocumentStore] = None,
    ) -> "MarketplaceStore":
        """
        Build a store seeded from the JSON fixtures in data_dir.

        Args:
            data_dir: Directory holding users.json, services.json, bookings.json.
                      Defaults to ./data relative to project root.
            store: Document store to seed (defaults to a fresh one)
        """
        data = cls(store)
        data.load_fixtures(data_dir or DEFAULT_DATA_DIR)
        return data

    def load_fixtures(self, data_dir: Path) -> None:
        for collection, model in ((USERS, User), (SERVICES, Service), (BOOKINGS, Booking)):
            records = self._load_json(Path(data_dir) / f"{collection}.json")
            for record in records:
                item = model.model_validate(record)
                self.store.seed(collection, item.id, item.to_document())
            logger.debug(f"Loaded {len(records)} {collection} fixtures")

    @staticmethod
    def _load_json(filepath: Path) -> list[dict]:
        if not filepath.exists():
            return []
        with open(filepath, "r") as f:
            return json.load(f)

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[User]:
        doc = await self.store.get(USERS, user_id)
        return User.model_validate(doc) if doc else None

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> None:
        await self.store.update(USERS, user_id, fields)

    async def increment_unread(self, user_id: str, amount: int = 1) -> None:
        """Adjust a user's unread-notification counter at write time."""
        fields: dict[str, Any] = {"unreadNotifications": Increment(amount)}
        if amount > 0:
            fields["lastNotificationAt"] = SERVER_TIMESTAMP
        await self.store.update(USERS, user_id, fields)

    # =========================================================================
    # Services
    # =========================================================================

    async def get_service(self, service_id: str) -> Optional[Service]:
        doc = await self.store.get(SERVICES, service_id)
        return Service.model_validate(doc) if doc else None

    async def active_services(self) -> list[Service]:
        docs = await self.store.query(SERVICES, where={"status": "active"})
        return [Service.model_validate(d) for d in docs]

    # =========================================================================
    # Bookings
    # =========================================================================

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        doc = await self.store.get(BOOKINGS, booking_id)
        return Booking.model_validate(doc) if doc else None

    async def add_booking(self, document: dict[str, Any]) -> str:
        return await self.store.add(BOOKINGS, document)

    async def update_booking(
        self,
        booking_id: str,
        fields: dict[str, Any],
        expected_status: Optional[BookingStatus] = None,
    ) -> None:
        """
        Partially update a booking.

        When expected_status is given the write only lands if the stored
        status still equals it; otherwise PreconditionFailed is raised.
        """
        expected = None
        if expected_status is not None:
            expected = {"status": BookingStatus(expected_status).value}
        await self.store.update(BOOKINGS, booking_id, fields, expected=expected)

    async def bookings_for_vendor(self, vendor_id: str) -> list[Booking]:
        docs = await self.store.query(
            BOOKINGS, where={"vendorId": vendor_id}, order_by="createdAt", descending=True
        )
        return [Booking.model_validate(d) for d in docs]

    async def bookings_for_customer(self, customer_id: str) -> list[Booking]:
        docs = await self.store.query(
            BOOKINGS, where={"customerId": customer_id}, order_by="createdAt", descending=True
        )
        return [Booking.model_validate(d) for d in docs]

    def watch_vendor_bookings(
        self, vendor_id: str, callback: Callable[[list[Booking]], None]
    ) -> Subscription:
        """Live booking requests for a vendor, newest first."""
        return self.store.subscribe(
            BOOKINGS,
            lambda docs: callback([Booking.model_validate(d) for d in docs]),
            where={"vendorId": vendor_id},
            order_by="createdAt",
            descending=True,
        )

    def watch_customer_bookings(
        self, customer_id: str, callback: Callable[[list[Booking]], None]
    ) -> Subscription:
        """Live bookings made by a customer, newest first."""
        return self.store.subscribe(
            BOOKINGS,
            lambda docs: callback([Booking.model_validate(d) for d in docs]),
            where={"customerId": customer_id},
            order_by="createdAt",
            descending=True,
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    async def get_notification(self, notification_id: str) -> Optional[Notification]:
        doc = await self.store.get(NOTIFICATIONS, notification_id)
        return Notification.model_validate(doc) if doc else None

    async def add_notification(self, document: dict[str, Any]) -> str:
        return await self.store.add(NOTIFICATIONS, document)

    async def update_notification(self, notification_id: str, fields: dict[str, Any]) -> None:
        await self.store.update(NOTIFICATIONS, notification_id, fields)

    async def notifications_for(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Notification]:
        where: dict[str, Any] = {"recipientId": recipient_id}
        if unread_only:
            where["read"] = False
        docs = await self.store.query(
            NOTIFICATIONS, where=where, order_by="createdAt", descending=True, limit=limit
        )
        return [Notification.model_validate(d) for d in docs]

    def watch_notifications(
        self,
        recipient_id: str,
        callback: Callable[[list[Notification]], None],
        limit: Optional[int] = None,
    ) -> Subscription:
        return self.store.subscribe(
            NOTIFICATIONS,
            lambda docs: callback([Notification.model_validate(d) for d in docs]),
            where={"recipientId": recipient_id},
            order_by="createdAt",
            descending=True,
            limit=limit,
        )

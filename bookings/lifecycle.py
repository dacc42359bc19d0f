"""
Booking Lifecycle Controller.

Owns the two vendor decisions on a booking (accept, reject) and the
customer-initiated creation of a booking. Each operation persists exactly
one booking write, then hands the matching notification to the outbox.

Order of checks for a decision:
1. NotFound      - the booking id does not resolve
2. Unauthorized  - the caller is not the booking's vendor
3. InvalidState  - the booking is no longer pending

Design decisions:
- The status write carries a precondition (status must still be pending),
  so two racing decisions cannot both land; the loser gets InvalidState
- The operation's result depends only on the booking write; notification
  delivery runs in the background and can never fail or delay it
- Collaborators are passed in at construction; nothing is looked up from
  module state
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from shared.config import Settings, get_settings
from shared.data_store import MarketplaceStore
from shared.document_store import SERVER_TIMESTAMP
from shared.errors import InvalidState, NotFound, PreconditionFailed, Unauthorized, ValidationError
from shared.models import Booking, BookingStatus, ServiceStatus
from shared.templates import NotificationType, render_notification
from bookings.outbox import Outbox
from bookings.state import BookingDecision, ensure_transition
from bookings.validation import BookingDetails, validate_booking_details
from notifications.models import (
    BookingCancelled,
    BookingConfirmed,
    BookingRequested,
    DispatchReport,
)

logger = logging.getLogger("booking_lifecycle")

VENDOR_NOT_NOTIFIED = "Booking created, but failed to notify vendor."


@dataclass
class BookingReceipt:
    """
    Result of create_booking().

    The booking is already persisted. delivery is the background task
    notifying the vendor; advisory() turns its outcome into the soft
    warning shown next to the confirmation.
    """
    booking: Booking
    delivery: "asyncio.Task[Optional[DispatchReport]]"

    async def advisory(self) -> Optional[str]:
        report = await self.delivery
        if report is None:
            return VENDOR_NOT_NOTIFIED
        return None


class BookingLifecycleController:
    """
    Applies vendor decisions and creates bookings.

    Example:
        controller = BookingLifecycleController(data, outbox)
        status = await controller.apply_booking_decision("bkg-001", "accept", "vend-001")
    """

    def __init__(
        self,
        data: MarketplaceStore,
        outbox: Outbox,
        settings: Optional[Settings] = None,
    ):
        self.data = data
        self.outbox = outbox
        self.settings = settings or get_settings()

    # =========================================================================
    # Vendor decisions
    # =========================================================================

    async def apply_booking_decision(
        self,
        booking_id: str,
        decision: BookingDecision,
        caller_id: str,
    ) -> BookingStatus:
        """
        Accept or reject a pending booking.

        Args:
            booking_id: Booking to decide on
            decision: "accept" or "reject"
            caller_id: Authenticated caller; must be the booking's vendor

        Returns:
            The booking's new status

        Raises:
            NotFound: If the booking does not exist
            Unauthorized: If the caller is not the booking's vendor
            ValidationError: If the decision is not accept or reject
            InvalidState: If the booking is not pending (or stopped being
                          pending before the write landed)
            StoreError: If the booking write itself failed
        """
        try:
            decision = BookingDecision(decision)
        except ValueError:
            raise ValidationError([f"Unknown booking decision '{decision}'"])
        booking = await self.data.get_booking(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        if not caller_id or caller_id != booking.vendor_id:
            raise Unauthorized("Only the booking's vendor can accept or reject it")

        target = decision.target_status
        if booking.status != BookingStatus.PENDING:
            raise InvalidState(
                f"Booking {booking_id} is '{BookingStatus(booking.status).value}', not pending"
            )
        ensure_transition(booking.status, target)

        try:
            await self.data.update_booking(
                booking_id,
                {
                    "status": target.value,
                    "updatedAt": SERVER_TIMESTAMP,
                    "updatedBy": caller_id,
                    "actionTimestamp": SERVER_TIMESTAMP,
                },
                expected_status=BookingStatus.PENDING,
            )
        except PreconditionFailed:
            raise InvalidState(f"Booking {booking_id} was decided by another request")

        logger.info(f"Booking {booking_id} {target.value} by {caller_id}")
        self._notify_customer(booking, target, caller_id)
        return target

    async def accept(self, booking_id: str, caller_id: str) -> BookingStatus:
        return await self.apply_booking_decision(booking_id, BookingDecision.ACCEPT, caller_id)

    async def reject(self, booking_id: str, caller_id: str) -> BookingStatus:
        return await self.apply_booking_decision(booking_id, BookingDecision.REJECT, caller_id)

    def _notify_customer(self, booking: Booking, status: BookingStatus, vendor_id: str) -> None:
        if status == BookingStatus.CONFIRMED:
            payload_cls, notification_type = BookingConfirmed, NotificationType.BOOKING_CONFIRMED
        else:
            payload_cls, notification_type = BookingCancelled, NotificationType.BOOKING_CANCELLED

        payload = payload_cls(
            booking_id=booking.id,
            service_id=booking.service_id,
            service_name=booking.service_name,
            event_date=booking.event_date,
        )
        title, body = render_notification(
            notification_type, "push", service_name=booking.service_name
        )
        self.outbox.enqueue(booking.customer_id, title, body, payload, sender_id=vendor_id)

    # =========================================================================
    # Booking creation
    # =========================================================================

    async def create_booking(
        self,
        service_id: str,
        customer_id: str,
        details: BookingDetails,
    ) -> BookingReceipt:
        """
        Create a pending booking for a service and notify its vendor.

        Details are validated before anything is read or written.

        Raises:
            ValidationError: If the booking details are missing or malformed
            NotFound: If the service or customer does not exist
            InvalidState: If the service is not active
            Unauthorized: If the vendor tries to book their own service
        """
        today = self.data.now().date()
        valid = validate_booking_details(details, today, self.settings.PHONE_COUNTRY_CODE)

        service = await self.data.get_service(service_id)
        if service is None:
            raise NotFound("Service", service_id)
        customer = await self.data.get_user(customer_id)
        if customer is None:
            raise NotFound("Customer", customer_id)
        if service.status != ServiceStatus.ACTIVE:
            raise InvalidState(f"Service {service_id} is not accepting bookings")
        if service.vendor_id == customer_id:
            raise Unauthorized("Vendors cannot book their own services")

        booking = Booking(
            service_id=service_id,
            service_name=service.title,
            service_price=service.price,
            vendor_id=service.vendor_id,
            vendor_name=service.vendor_name,
            customer_id=customer_id,
            customer_name=customer.name,
            customer_email=valid.contact_email,
            customer_phone=valid.contact_phone,
            event_date=valid.event_date,
            event_time=valid.event_time,
            event_location=valid.event_location,
            guest_count=valid.guest_count,
            special_requests=valid.special_requests,
            status=BookingStatus.PENDING,
            total_amount=service.price,
        )
        document = booking.to_document()
        document["createdAt"] = SERVER_TIMESTAMP
        document["updatedAt"] = SERVER_TIMESTAMP
        booking_id = await self.data.add_booking(document)
        stored = await self.data.get_booking(booking_id)
        logger.info(f"Booking {booking_id} created by {customer_id} for service {service_id}")

        payload = BookingRequested(
            booking_id=booking_id,
            service_id=service_id,
            service_name=service.title,
            customer_id=customer_id,
            customer_name=customer.name,
            event_date=valid.event_date,
        )
        title, body = render_notification(
            NotificationType.BOOKING_REQUEST,
            "push",
            customer_name=customer.name,
            service_name=service.title,
        )
        delivery = self.outbox.enqueue(service.vendor_id, title, body, payload, sender_id=customer_id)
        return BookingReceipt(booking=stored or booking.model_copy(update={"id": booking_id}), delivery=delivery)

"""
Demonstration scenarios for the booking workflow.

Each scenario builds a fresh marketplace from the fixtures, performs one
customer or vendor action, waits for background notification delivery and
prints what went out on each channel.
"""

import asyncio
import logging
from datetime import timedelta

from shared.channels import NotificationChannels
from shared.config import get_settings
from shared.log import configure_logging
from bookings.validation import BookingDetails
from bookings.wiring import Marketplace, build_marketplace

logger = logging.getLogger("demo")


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70 + "\n")


def _action(text: str) -> None:
    print("-" * 70)
    print(f"ACTION: {text}")
    print("-" * 70 + "\n")


def _print_traffic(marketplace: Marketplace) -> None:
    print("\nNotifications sent:")
    messages = marketplace.channels.get_all_sent_messages()
    if not messages:
        print("  (none)")
    for msg in messages:
        print(f"  {msg}")


async def _print_booking(marketplace: Marketplace, booking_id: str) -> None:
    booking = await marketplace.data.get_booking(booking_id)
    print(f"\nBooking {booking_id}: status={booking.status} updatedBy={booking.updated_by}")


async def run_create_booking_demo() -> Marketplace:
    """A customer books a catering service; the vendor gets a request notification."""
    _banner("DEMO: New Booking Request")
    marketplace = build_marketplace()
    event_date = marketplace.data.now().date() + timedelta(days=45)

    _action("Priya (cust-001) books 'Royal Wedding Buffet' (svc-001)")
    receipt = await marketplace.controller.create_booking(
        "svc-001",
        "cust-001",
        BookingDetails(
            event_date=event_date.isoformat(),
            event_time="18:30",
            event_location="Taj Palace, New Delhi",
            guest_count="250",
            special_requests="Vegetarian menu only",
            contact_phone="+91 98765 43210",
            contact_email="priya.sharma@example.com",
        ),
    )
    advisory = await receipt.advisory()

    print(f"Booking {receipt.booking.id} created: status={receipt.booking.status} "
          f"total={receipt.booking.total_amount}")
    print(f"Advisory: {advisory or 'none'}")
    _print_traffic(marketplace)
    return marketplace


async def run_accept_demo() -> Marketplace:
    """The vendor accepts a pending booking; the customer is notified."""
    _banner("DEMO: Vendor Accepts Booking")
    marketplace = build_marketplace()

    _action("Royal Caterers (vend-001) accepts bkg-001")
    status = await marketplace.controller.accept("bkg-001", "vend-001")
    print(f"Result: {status.value}")
    await marketplace.outbox.join()

    await _print_booking(marketplace, "bkg-001")
    _print_traffic(marketplace)
    return marketplace


async def run_reject_demo() -> Marketplace:
    """The vendor declines; the customer has opted out, so nothing is sent."""
    _banner("DEMO: Vendor Rejects Booking (customer opted out)")
    marketplace = build_marketplace()

    _action("Lens & Light Studio (vend-002) rejects bkg-003")
    status = await marketplace.controller.reject("bkg-003", "vend-002")
    print(f"Result: {status.value}")
    await marketplace.outbox.join()

    await _print_booking(marketplace, "bkg-003")
    _print_traffic(marketplace)
    print("\nArjun (cust-002) has notifications disabled: no record, no push, no email.")
    return marketplace


async def run_flaky_email_demo() -> Marketplace:
    """Email always fails and the store hiccups once; the decision still succeeds."""
    _banner("DEMO: Flaky Email and a Transient Store Error")
    marketplace = build_marketplace(
        channels=NotificationChannels(email_fail_rate=1.0),
        sleep=_no_sleep,
    )
    marketplace.data.store.inject_fault("notifications", "add", "unavailable")

    _action("Royal Caterers (vend-001) accepts bkg-001 while email is down")
    status = await marketplace.controller.accept("bkg-001", "vend-001")
    print(f"Result: {status.value}")
    await marketplace.outbox.join()

    await _print_booking(marketplace, "bkg-001")
    _print_traffic(marketplace)
    records = await marketplace.inbox.list("cust-001")
    print(f"\nNotification records for cust-001: {len(records)}")
    return marketplace


async def _no_sleep(seconds: float) -> None:
    logger.info(f"(skipping {seconds:.1f}s backoff)")


SCENARIOS = {
    "create": run_create_booking_demo,
    "accept": run_accept_demo,
    "reject": run_reject_demo,
    "flaky-email": run_flaky_email_demo,
}


def run_scenario(name: str) -> None:
    """Run one scenario (or "all") to completion."""
    configure_logging(get_settings().LOG_LEVEL)
    names = list(SCENARIOS) if name == "all" else [name]

    async def _run():
        for scenario in names:
            marketplace = await SCENARIOS[scenario]()
            await marketplace.close()

    asyncio.run(_run())

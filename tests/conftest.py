"""
Shared pytest fixtures for the booking workflow tests.

These fixtures provide consistent test data and a fresh marketplace per
test, so tests don't interfere with each other.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from shared.channels import EmailChannel, NotificationChannels, PushChannel
from shared.config import Settings
from shared.data_store import MarketplaceStore
from shared.document_store import DocumentStore
from bookings.outbox import Outbox
from bookings.lifecycle import BookingLifecycleController
from bookings.validation import BookingDetails
from bookings.wiring import Marketplace, build_marketplace
from notifications.dispatcher import NotificationDispatcher
from notifications.inbox import NotificationInbox

FIXED_NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


class RecordedSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, independent of the environment."""
    return Settings(_env_file=None, APP_ENV="test", PUSH_ENDPOINT_URL="", DATA_DIR=None)


@pytest.fixture
def document_store() -> DocumentStore:
    """Empty document store on a fixed clock."""
    return DocumentStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def store(data_dir: Path, document_store: DocumentStore) -> MarketplaceStore:
    """
    Fresh MarketplaceStore for each test.

    Uses the real JSON fixtures but seeds a new document store so writes
    never leak between tests.
    """
    return MarketplaceStore.from_fixtures(data_dir, store=document_store)


@pytest.fixture
def push_channel() -> PushChannel:
    return PushChannel(fail_rate=0.0)


@pytest.fixture
def email_channel() -> EmailChannel:
    return EmailChannel(fail_rate=0.0)


@pytest.fixture
def channels(push_channel: PushChannel, email_channel: EmailChannel) -> NotificationChannels:
    """Fresh NotificationChannels facade for each test."""
    return NotificationChannels(push=push_channel, email=email_channel)


@pytest.fixture
def fake_sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def dispatcher(store, channels, settings, fake_sleep) -> NotificationDispatcher:
    return NotificationDispatcher(store, channels, settings=settings, sleep=fake_sleep)


@pytest.fixture
def outbox(store, dispatcher, settings) -> Outbox:
    return Outbox(store, dispatcher, max_attempts=settings.OUTBOX_MAX_ATTEMPTS)


@pytest.fixture
def controller(store, outbox, settings) -> BookingLifecycleController:
    return BookingLifecycleController(store, outbox, settings=settings)


@pytest.fixture
def inbox(store) -> NotificationInbox:
    return NotificationInbox(store)


@pytest.fixture
def marketplace(data_dir, channels, settings, fake_sleep, document_store) -> Marketplace:
    """Fully wired marketplace over the fixtures."""
    return build_marketplace(
        settings=settings,
        data_dir=data_dir,
        channels=channels,
        sleep=fake_sleep,
        store=document_store,
    )


@pytest.fixture
def valid_details() -> BookingDetails:
    """A booking form that passes every check."""
    return BookingDetails(
        event_date="2026-12-20",
        event_time="18:30",
        event_location="Taj Palace, New Delhi",
        guest_count="250",
        special_requests="Vegetarian menu only",
        contact_phone="+91 98765 43210",
        contact_email="priya.sharma@example.com",
    )


# =============================================================================
# Fixture ids
# =============================================================================

@pytest.fixture
def priya_id() -> str:
    """Customer with a push token and notifications enabled; owns bkg-001."""
    return "cust-001"


@pytest.fixture
def arjun_id() -> str:
    """Customer who has turned notifications off; owns pending bkg-003."""
    return "cust-002"


@pytest.fixture
def neha_id() -> str:
    """Customer with no push token; owns confirmed bkg-002 and completed bkg-004."""
    return "cust-003"


@pytest.fixture
def royal_id() -> str:
    """Vendor of svc-001 (active) and svc-003 (inactive), with a push token."""
    return "vend-001"


@pytest.fixture
def lens_id() -> str:
    """Vendor of svc-002, no push token."""
    return "vend-002"


@pytest.fixture
def pending_booking_id() -> str:
    """Priya's pending booking with Royal Caterers."""
    return "bkg-001"


@pytest.fixture
def confirmed_booking_id() -> str:
    """Neha's confirmed booking with Lens & Light Studio."""
    return "bkg-002"

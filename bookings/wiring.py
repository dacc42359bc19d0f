"""
Application wiring.

Builds every collaborator once and hands them to each other explicitly.
The API, the CLI demo and the tests all start from build_marketplace().
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from shared.channels import EmailChannel, HttpPushChannel, NotificationChannels, PushChannel
from shared.config import Settings, get_settings
from shared.data_store import MarketplaceStore
from shared.document_store import DocumentStore
from shared.geocoding import NominatimClient, build_geocoder
from bookings.lifecycle import BookingLifecycleController
from bookings.outbox import Outbox
from notifications.dispatcher import NotificationDispatcher
from notifications.inbox import NotificationInbox

logger = logging.getLogger("wiring")


@dataclass
class Marketplace:
    """Everything a request handler or scenario needs, constructed once."""
    settings: Settings
    data: MarketplaceStore
    channels: NotificationChannels
    dispatcher: NotificationDispatcher
    outbox: Outbox
    controller: BookingLifecycleController
    inbox: NotificationInbox
    geocoder: NominatimClient

    async def close(self) -> None:
        """Finish in-flight deliveries and release HTTP clients."""
        await self.outbox.join()
        await self.geocoder.close()
        if isinstance(self.channels.push, HttpPushChannel):
            await self.channels.push.close()


def build_channels(settings: Settings) -> NotificationChannels:
    """HTTP push when an endpoint is configured, the logging mock otherwise."""
    if settings.PUSH_ENDPOINT_URL:
        push: PushChannel = HttpPushChannel(
            settings.PUSH_ENDPOINT_URL, timeout=settings.PUSH_TIMEOUT_SECONDS
        )
    else:
        push = PushChannel()
    return NotificationChannels(push=push, email=EmailChannel(from_addr=settings.EMAIL_FROM))


def build_marketplace(
    settings: Optional[Settings] = None,
    data_dir: Optional[Path] = None,
    channels: Optional[NotificationChannels] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    store: Optional[DocumentStore] = None,
) -> Marketplace:
    """
    Construct the marketplace from fixtures.

    Args:
        settings: Settings to use (defaults to get_settings())
        data_dir: Fixture directory (defaults to settings.DATA_DIR, then ./data)
        channels: Delivery channels (defaults to build_channels(settings))
        sleep: Awaitable used between notification-write retries
        store: Document store to seed (defaults to a fresh in-memory one)
    """
    settings = settings or get_settings()
    if data_dir is None and settings.DATA_DIR:
        data_dir = Path(settings.DATA_DIR)

    data = MarketplaceStore.from_fixtures(data_dir, store=store)
    channels = channels or build_channels(settings)
    dispatcher = NotificationDispatcher(data, channels, settings=settings, sleep=sleep)
    outbox = Outbox(data, dispatcher, max_attempts=settings.OUTBOX_MAX_ATTEMPTS)
    controller = BookingLifecycleController(data, outbox, settings=settings)

    logger.info(f"{settings.APP_NAME} marketplace ready ({settings.APP_ENV})")
    return Marketplace(
        settings=settings,
        data=data,
        channels=channels,
        dispatcher=dispatcher,
        outbox=outbox,
        controller=controller,
        inbox=NotificationInbox(data),
        geocoder=build_geocoder(settings),
    )

"""
FastAPI application for the DreamEvents booking workflow.

This application provides:
1. Booking endpoints (create, accept, reject, vendor/customer lists, stats)
2. The notification inbox (list, unread count, mark read)
3. Place search for location entry
4. An admin endpoint that drains the notification outbox

The caller's identity arrives in the X-User-Id header, set by the
authentication layer in front of this service.

Run with:
    uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared.config import get_settings
from shared.errors import (
    GeocodingError,
    InvalidState,
    MarketplaceError,
    NotFound,
    StoreError,
    Unauthorized,
    ValidationError,
)
from shared.geocoding import Place
from shared.identity import ensure_role, resolve_caller
from shared.log import configure_logging
from shared.models import Booking, BookingStatus, Notification, User, UserRole
from bookings.queries import VendorStats, filter_by_status, vendor_stats
from bookings.state import BookingDecision
from bookings.validation import BookingDetails
from bookings.wiring import Marketplace, build_marketplace

logger = logging.getLogger("api")


# Request/response models
class CreateBookingRequest(BookingDetails):
    """Booking form plus the service being booked."""
    service_id: str


class CreateBookingResponse(BaseModel):
    booking: Booking
    advisory: Optional[str] = None


class DecisionResponse(BaseModel):
    booking_id: str
    status: BookingStatus


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    marked: int


class DrainResponse(BaseModel):
    delivered: int


class ErrorResponse(BaseModel):
    detail: str
    errors: list[str] = Field(default_factory=list)


# =============================================================================
# Error mapping
# =============================================================================

def status_code_for(error: MarketplaceError) -> int:
    """HTTP status for a workflow error."""
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, Unauthorized):
        return 403
    if isinstance(error, InvalidState):
        return 409
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, GeocodingError):
        return 502
    if isinstance(error, StoreError):
        return 503 if error.is_transient else 500
    return 500


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(detail=str(exc), errors=getattr(exc, "errors", []))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# =============================================================================
# Dependencies
# =============================================================================

def get_marketplace(request: Request) -> Marketplace:
    return request.app.state.marketplace


async def get_caller(
    marketplace: Marketplace = Depends(get_marketplace),
    x_user_id: Optional[str] = Header(default=None),
) -> User:
    """The authenticated caller's profile."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return await resolve_caller(marketplace.data, x_user_id)


# =============================================================================
# App factory
# =============================================================================

def create_app(marketplace: Optional[Marketplace] = None) -> FastAPI:
    """
    Build the application.

    Args:
        marketplace: Pre-wired marketplace (tests). When omitted, one is
                     built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown."""
        settings = get_settings()
        configure_logging(settings.LOG_LEVEL)
        if getattr(app.state, "marketplace", None) is None:
            app.state.marketplace = build_marketplace(settings)
        logger.info(f"Starting {settings.APP_NAME} API")
        yield
        logger.info("Shutting down")
        await app.state.marketplace.close()

    app = FastAPI(
        title="DreamEvents Booking API",
        description="""
        Booking lifecycle and notification fan-out for the DreamEvents marketplace.

        - `/bookings/*` - Create bookings, accept or reject them, dashboards
        - `/notifications/*` - The caller's notification inbox
        - `/places/*` - Place search for event locations
        - `/admin/*` - Outbox maintenance
        """,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.marketplace = marketplace
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "dreamevents-bookings"}

    # =========================================================================
    # Bookings
    # =========================================================================

    @app.post("/bookings", response_model=CreateBookingResponse, status_code=201, tags=["Bookings"])
    async def create_booking(
        request: CreateBookingRequest,
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        """
        Create a pending booking as the calling customer.

        The vendor is notified in the background. If that fails within a
        short wait, the response carries a soft advisory.
        """
        ensure_role(caller, UserRole.CUSTOMER)
        details = BookingDetails.model_validate(request.model_dump(exclude={"service_id"}))
        receipt = await mp.controller.create_booking(request.service_id, caller.id, details)

        advisory = None
        try:
            advisory = await asyncio.wait_for(
                asyncio.shield(receipt.advisory()), mp.settings.ADVISORY_WAIT_SECONDS
            )
        except asyncio.TimeoutError:
            logger.info(f"Vendor notification for {receipt.booking.id} still in flight")
        return CreateBookingResponse(booking=receipt.booking, advisory=advisory)

    @app.post("/bookings/{booking_id}/{decision}", response_model=DecisionResponse, tags=["Bookings"])
    async def decide_booking(
        booking_id: str,
        decision: BookingDecision,
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        """Accept or reject a pending booking as its vendor."""
        ensure_role(caller, UserRole.VENDOR)
        status = await mp.controller.apply_booking_decision(booking_id, decision, caller.id)
        return DecisionResponse(booking_id=booking_id, status=status)

    @app.get("/bookings/vendor", response_model=list[Booking], tags=["Bookings"])
    async def vendor_bookings(
        status: str = Query(default="all"),
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        """Booking requests for the calling vendor, newest first."""
        ensure_role(caller, UserRole.VENDOR)
        return filter_by_status(await mp.data.bookings_for_vendor(caller.id), _status_filter(status))

    @app.get("/bookings/vendor/stats", response_model=VendorStats, tags=["Bookings"])
    async def vendor_dashboard(
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        ensure_role(caller, UserRole.VENDOR)
        return vendor_stats(await mp.data.bookings_for_vendor(caller.id))

    @app.get("/bookings/customer", response_model=list[Booking], tags=["Bookings"])
    async def customer_bookings(
        status: str = Query(default="all"),
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        """Bookings made by the calling customer, newest first."""
        ensure_role(caller, UserRole.CUSTOMER)
        return filter_by_status(await mp.data.bookings_for_customer(caller.id), _status_filter(status))

    # =========================================================================
    # Notifications
    # =========================================================================

    @app.get("/notifications", response_model=list[Notification], tags=["Notifications"])
    async def list_notifications(
        limit: Optional[int] = Query(default=None, ge=1),
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return await mp.inbox.list(caller.id, limit=limit)

    @app.get("/notifications/unread-count", response_model=UnreadCount, tags=["Notifications"])
    async def unread_count(
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return UnreadCount(unread=await mp.inbox.unread_count(caller.id))

    @app.post("/notifications/read-all", response_model=MarkAllReadResponse, tags=["Notifications"])
    async def mark_all_read(
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return MarkAllReadResponse(marked=await mp.inbox.mark_all_read(caller.id))

    @app.post("/notifications/{notification_id}/read", response_model=Notification, tags=["Notifications"])
    async def mark_read(
        notification_id: str,
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return await mp.inbox.mark_read(notification_id, caller.id)

    # =========================================================================
    # Admin
    # =========================================================================

    @app.post("/admin/outbox/drain", response_model=DrainResponse, tags=["Admin"])
    async def drain_outbox(
        caller: User = Depends(get_caller),
        mp: Marketplace = Depends(get_marketplace),
    ):
        """Redeliver notifications whose earlier delivery failed."""
        ensure_role(caller, UserRole.ADMIN)
        return DrainResponse(delivered=await mp.outbox.drain())

    # =========================================================================
    # Places
    # =========================================================================

    @app.get("/places/search", response_model=list[Place], tags=["Places"])
    async def search_places(
        q: str = Query(..., min_length=1),
        limit: Optional[int] = Query(default=None, ge=1, le=20),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return await mp.geocoder.search(q, limit=limit or mp.settings.GEOCODING_RESULT_LIMIT)

    @app.get("/places/reverse", response_model=Optional[Place], tags=["Places"])
    async def reverse_place(
        lat: float = Query(..., ge=-90, le=90),
        lon: float = Query(..., ge=-180, le=180),
        mp: Marketplace = Depends(get_marketplace),
    ):
        return await mp.geocoder.reverse(lat, lon)

    return app


def _status_filter(status: str):
    if status == "all":
        return status
    try:
        return BookingStatus(status)
    except ValueError:
        raise ValidationError([f"Unknown booking status '{status}'"])


app = create_app()

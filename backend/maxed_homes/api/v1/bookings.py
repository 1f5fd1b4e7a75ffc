"""Bookings API router.

Thin layer over :class:`BookingEngine`: each endpoint loads the booking, runs
the matching capability check from :mod:`maxed_homes.auth.permissions` and
then calls exactly one engine operation. Domain errors are turned into HTTP
responses by the handler registered in ``main.py``.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.api.deps import get_booking_engine, get_current_active_user, get_db
from maxed_homes.auth.permissions import (
    can_act_as_guest,
    can_manage_booking,
    can_verify_payment,
    can_view_booking,
)
from maxed_homes.bookings.availability import is_available, unavailable_dates
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.models.booking import Booking
from maxed_homes.models.property import Property
from maxed_homes.models.user import User
from maxed_homes.schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    CancelRequest,
    ConfirmPaymentRequest,
    MarkPaidRequest,
    QuoteRequest,
    QuoteResponse,
    RejectPaymentRequest,
)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _forbidden(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Not allowed to {action} this booking",
    )


async def _load(
    db: AsyncSession,
    engine: BookingEngine,
    booking_id: uuid.UUID,
) -> tuple[Booking, Property | None]:
    """Fetch a booking and its property. Raises ``NotFound`` (404) for unknown ids."""
    booking = await engine.get(db, booking_id)
    prop = await db.get(Property, booking.property_id)
    return booking, prop


# ---------------------------------------------------------------------------
# Quotes & availability (no writes)
# ---------------------------------------------------------------------------


@router.post(
    "/quote",
    response_model=QuoteResponse,
    summary="Price a stay and check whether the dates are free",
)
async def quote_booking(
    body: QuoteRequest,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
) -> dict:
    price = await engine.quote(db, body.property_id, body.check_in, body.check_out, body.security_deposit)
    available = await is_available(db, body.property_id, body.check_in, body.check_out)
    return {
        "property_id": body.property_id,
        "check_in": body.check_in,
        "check_out": body.check_out,
        "nights": price.nights,
        "base_price": price.base_price,
        "cleaning_fee": price.cleaning_fee,
        "service_fee": price.service_fee,
        "taxes": price.taxes,
        "total_amount": price.total_amount,
        "security_deposit": price.security_deposit,
        "currency": engine.config.currency,
        "available": available,
    }


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    summary="Availability of a property over a date window",
)
async def property_availability(
    property_id: uuid.UUID = Query(..., description="Property to check"),
    check_in: date = Query(..., description="First night of the window"),
    check_out: date = Query(..., description="Day after the last night"),
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
) -> dict:
    await engine.get_property(db, property_id)
    return {
        "property_id": property_id,
        "check_in": check_in,
        "check_out": check_out,
        "available": await is_available(db, property_id, check_in, check_out),
        "unavailable_dates": await unavailable_dates(db, property_id, check_in, check_out),
    }


# ---------------------------------------------------------------------------
# Booking lifecycle
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    """Create a ``pending`` booking with the current user as guest."""
    return await engine.create(
        db,
        property_id=body.property_id,
        guest_id=current_user.id,
        check_in=body.check_in,
        check_out=body.check_out,
        guest_count=body.guest_count,
        security_deposit=body.security_deposit,
        special_requests=body.special_requests,
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    """Visible to the guest, the property's host and admins."""
    booking, prop = await _load(db, engine, booking_id)
    if not can_view_booking(current_user, booking, prop):
        raise _forbidden("view")
    return booking


@router.post("/{booking_id}/approve", response_model=BookingResponse, summary="Host approves a booking")
async def approve_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    booking, prop = await _load(db, engine, booking_id)
    if not can_manage_booking(current_user, prop):
        raise _forbidden("approve")
    return await engine.approve(db, booking.id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel a booking")
async def cancel_booking(
    booking_id: uuid.UUID,
    body: CancelRequest,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    """The guest, the host or an admin may cancel."""
    booking, prop = await _load(db, engine, booking_id)
    if not (can_act_as_guest(current_user, booking) or can_manage_booking(current_user, prop)):
        raise _forbidden("cancel")
    return await engine.cancel(db, booking.id, body.reason)


@router.post("/{booking_id}/mark-paid", response_model=BookingResponse, summary="Guest reports a payment")
async def mark_booking_paid(
    booking_id: uuid.UUID,
    body: MarkPaidRequest,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    booking, _ = await _load(db, engine, booking_id)
    if not can_act_as_guest(current_user, booking):
        raise _forbidden("pay for")
    return await engine.mark_paid(db, booking.id, body.method, body.reference, body.proof_url)


@router.post(
    "/{booking_id}/retry-payment",
    response_model=BookingResponse,
    summary="Guest reopens payment after a rejection",
)
async def retry_booking_payment(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    booking, _ = await _load(db, engine, booking_id)
    if not can_act_as_guest(current_user, booking):
        raise _forbidden("pay for")
    return await engine.retry_payment(db, booking.id)


@router.post(
    "/{booking_id}/confirm-payment",
    response_model=BookingResponse,
    summary="Admin confirms a submitted payment",
)
async def confirm_booking_payment(
    booking_id: uuid.UUID,
    body: ConfirmPaymentRequest,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    if not can_verify_payment(current_user):
        raise _forbidden("verify payment for")
    booking = await engine.get(db, booking_id)
    return await engine.confirm_payment(db, booking.id, confirmed_by=current_user.email, notes=body.notes)


@router.post(
    "/{booking_id}/reject-payment",
    response_model=BookingResponse,
    summary="Admin rejects a submitted payment",
)
async def reject_booking_payment(
    booking_id: uuid.UUID,
    body: RejectPaymentRequest,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    if not can_verify_payment(current_user):
        raise _forbidden("verify payment for")
    booking = await engine.get(db, booking_id)
    return await engine.reject_payment(db, booking.id, body.reason)


@router.post("/{booking_id}/complete", response_model=BookingResponse, summary="Mark a stay as completed")
async def complete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    booking, prop = await _load(db, engine, booking_id)
    if not can_manage_booking(current_user, prop):
        raise _forbidden("complete")
    return await engine.complete(db, booking.id)

"""Availability checks and the night-claim ledger.

``is_available`` is the fast-fail check run before a write. It is not what
prevents double-booking: that is the ``booking_nights`` primary key, maintained
by :func:`claim_nights` and :func:`release_nights` inside the same transaction
as the status change that needs them.
"""

import logging
import uuid
from collections.abc import Iterator
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.bookings.exceptions import InvalidInput, Unavailable
from maxed_homes.bookings.states import BLOCKING_STATUSES
from maxed_homes.models.availability import AvailabilityOverride
from maxed_homes.models.booking import Booking, BookingNight

logger = logging.getLogger(__name__)

_BLOCKING_VALUES = sorted(status.value for status in BLOCKING_STATUSES)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open ranges ``[a_start, a_end)`` and ``[b_start, b_end)`` share a night."""
    return a_start < b_end and b_start < a_end


def validate_range(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise InvalidInput("check_out must be after check_in")


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield each night of the stay; the check-out date is not a night."""
    night = check_in
    while night < check_out:
        yield night
        night += timedelta(days=1)


async def is_available(
    db: AsyncSession,
    property_id: uuid.UUID,
    check_in: date,
    check_out: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> bool:
    """Return ``False`` if a blocking booking or a host blackout touches the range.

    Raises:
        InvalidInput: If ``check_out`` is not after ``check_in``.
    """
    validate_range(check_in, check_out)

    query = select(Booking.id).where(
        Booking.property_id == property_id,
        Booking.status.in_(_BLOCKING_VALUES),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)

    result = await db.execute(query.limit(1))
    if result.first() is not None:
        return False

    blocked = await db.execute(
        select(AvailabilityOverride.id)
        .where(
            AvailabilityOverride.property_id == property_id,
            AvailabilityOverride.day >= check_in,
            AvailabilityOverride.day < check_out,
            AvailabilityOverride.is_available.is_(False),
        )
        .limit(1)
    )
    return blocked.first() is None


async def unavailable_dates(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
) -> list[date]:
    """Dates in ``[start, end)`` that cannot be booked, for calendar display."""
    validate_range(start, end)
    dates: set[date] = set()

    bookings = await db.execute(
        select(Booking.check_in, Booking.check_out).where(
            Booking.property_id == property_id,
            Booking.status.in_(_BLOCKING_VALUES),
            Booking.check_in < end,
            Booking.check_out > start,
        )
    )
    for booked_in, booked_out in bookings.all():
        dates.update(iter_nights(max(booked_in, start), min(booked_out, end)))

    overrides = await db.execute(
        select(AvailabilityOverride.day).where(
            AvailabilityOverride.property_id == property_id,
            AvailabilityOverride.day >= start,
            AvailabilityOverride.day < end,
            AvailabilityOverride.is_available.is_(False),
        )
    )
    dates.update(overrides.scalars().all())
    return sorted(dates)


async def nightly_rates(
    db: AsyncSession,
    property_id: uuid.UUID,
    check_in: date,
    check_out: date,
    default_rate: Decimal,
) -> list[Decimal]:
    """One rate per night: the host's price override where set, else ``default_rate``."""
    result = await db.execute(
        select(AvailabilityOverride.day, AvailabilityOverride.price_override).where(
            AvailabilityOverride.property_id == property_id,
            AvailabilityOverride.day >= check_in,
            AvailabilityOverride.day < check_out,
            AvailabilityOverride.price_override.is_not(None),
        )
    )
    overrides = {day: Decimal(price) for day, price in result.all()}
    return [overrides.get(night, default_rate) for night in iter_nights(check_in, check_out)]


async def minimum_nights(db: AsyncSession, property_id: uuid.UUID, check_in: date) -> int | None:
    """Minimum stay the host set for stays starting on ``check_in``, if any."""
    result = await db.execute(
        select(AvailabilityOverride.minimum_nights_override).where(
            AvailabilityOverride.property_id == property_id,
            AvailabilityOverride.day == check_in,
        )
    )
    return result.scalar_one_or_none()


def night_claims(booking: Booking) -> list[BookingNight]:
    return [
        BookingNight(property_id=booking.property_id, night=night, booking_id=booking.id)
        for night in iter_nights(booking.check_in, booking.check_out)
    ]


async def claim_nights(db: AsyncSession, booking: Booking) -> None:
    """Hold every night of ``booking`` in the ledger.

    Runs in a savepoint so a clash leaves the surrounding transaction usable.

    Raises:
        Unavailable: If another live booking already holds one of the nights.
    """
    try:
        async with db.begin_nested():
            db.add_all(night_claims(booking))
    except IntegrityError as exc:
        logger.info(
            "Night claim for booking %s on property %s clashed with another booking",
            booking.id,
            booking.property_id,
        )
        raise Unavailable("The selected dates are no longer available") from exc


async def release_nights(db: AsyncSession, booking_id: uuid.UUID) -> None:
    """Give back every night held by ``booking_id``."""
    await db.execute(delete(BookingNight).where(BookingNight.booking_id == booking_id))

"""Payment expiration sweep.

Holds no timer of its own; cron (``scripts/sweep_expired_payments.py``) or the
internal HTTP endpoint decides when it runs. Every expiry goes through
:meth:`BookingEngine.expire`, so a booking paid or cancelled while the sweep is
running simply loses the compare-and-swap and is skipped.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.exceptions import InvalidTransition
from maxed_homes.bookings.states import BookingStatus
from maxed_homes.models.booking import Booking

logger = logging.getLogger(__name__)


async def sweep_expired_payments(db: AsyncSession, engine: BookingEngine) -> int:
    """Expire every ``awaiting_payment`` booking whose deadline is in the past.

    Returns:
        How many bookings this call expired. Running it again straight away
        returns 0.
    """
    now = engine.clock()
    result = await db.execute(
        select(Booking.id)
        .where(
            Booking.status == BookingStatus.AWAITING_PAYMENT.value,
            Booking.payment_expires_at.is_not(None),
            Booking.payment_expires_at < now,
        )
        .order_by(Booking.payment_expires_at)
    )
    due = list(result.scalars().all())

    expired = 0
    for booking_id in due:
        try:
            await engine.expire(db, booking_id)
        except InvalidTransition as exc:
            # ConcurrentModification included: someone else moved it first.
            logger.info("Skipping booking %s during expiry sweep: %s", booking_id, exc.message)
            continue
        expired += 1

    if due:
        logger.info("Expiry sweep: %d of %d due bookings expired", expired, len(due))
    return expired

"""Booking lifecycle engine: the only code that writes ``Booking.status``.

Every transition is a single compare-and-swap::

    UPDATE bookings SET status = :target, ..., updated_at = :now
    WHERE id = :id AND status = :expected
    RETURNING *

run in a savepoint together with the matching ``booking_nights`` change. If the
update matches nothing another actor got there first, and the caller gets a
:class:`ConcurrentModification` carrying the status it lost to. Nothing is
retried internally.

The engine never commits; the caller owns the transaction (``get_db`` in the
HTTP layer, the sweep script for cron).
"""

import logging
import uuid
from collections.abc import Callable, Collection
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.bookings.availability import (
    claim_nights,
    is_available,
    minimum_nights,
    night_claims,
    nightly_rates,
    release_nights,
    validate_range,
)
from maxed_homes.bookings.commission import calculate_commission
from maxed_homes.bookings.config import EngineConfig
from maxed_homes.bookings.events import (
    BookingEvent,
    BookingEventDispatcher,
    BookingEventType,
    LoggingDispatcher,
)
from maxed_homes.bookings.exceptions import (
    CapacityExceeded,
    ConcurrentModification,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unavailable,
)
from maxed_homes.bookings.payments import active_payment_methods
from maxed_homes.bookings.pricing import PriceBreakdown, calculate_pricing, to_decimal
from maxed_homes.bookings.states import (
    BookingStatus,
    allowed_transitions,
    is_blocking,
)
from maxed_homes.models.booking import Booking
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC, matching the ``DateTime`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value


class BookingEngine:
    """Creates bookings and moves them through the status table.

    Args:
        config: Rates, payment window and accepted payment methods.
        dispatcher: Receives one :class:`BookingEvent` per successful
            transition. Defaults to :class:`LoggingDispatcher`.
        clock: Returns the current naive-UTC time. Injected so tests and the
            sweeper agree on "now".
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        dispatcher: BookingEventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.dispatcher = dispatcher or LoggingDispatcher()
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        """Load a booking fresh from the database.

        Raises:
            NotFound: If no booking has this id.
        """
        result = await db.execute(
            select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    async def get_property(self, db: AsyncSession, property_id: uuid.UUID) -> Property:
        prop = await db.get(Property, property_id)
        if prop is None:
            raise NotFound("Property", property_id)
        return prop

    async def quote(
        self,
        db: AsyncSession,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        security_deposit: Decimal | None = None,
    ) -> PriceBreakdown:
        """Price a stay without writing anything.

        Host price overrides replace the nightly rate on the nights they cover.
        """
        validate_range(check_in, check_out)
        prop = await self.get_property(db, property_id)
        return await self._price(db, prop, check_in, check_out, security_deposit)

    async def _price(
        self,
        db: AsyncSession,
        prop: Property,
        check_in: date,
        check_out: date,
        security_deposit: Decimal | None,
    ) -> PriceBreakdown:
        rates = await nightly_rates(db, prop.id, check_in, check_out, prop.price_per_night)
        return calculate_pricing(
            prop.price_per_night,
            (check_out - check_in).days,
            cleaning_fee=prop.cleaning_fee,
            service_fee_rate=self.config.service_fee_rate,
            tax_rate=self.config.tax_rate,
            security_deposit=prop.security_deposit if security_deposit is None else security_deposit,
            quantum=self.config.quantum,
            nightly_rates=rates,
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        property_id: uuid.UUID,
        guest_id: uuid.UUID,
        check_in: date,
        check_out: date,
        guest_count: int,
        security_deposit: Decimal | None = None,
        special_requests: str | None = None,
    ) -> Booking:
        """Insert a ``pending`` booking and claim its nights.

        Raises:
            InvalidInput: Bad dates, guest count, deposit or a stay shorter than
                the host's minimum.
            NotFound: Unknown property or guest.
            Unavailable: Inactive property, or the dates are taken.
            CapacityExceeded: More guests than the property hosts.
        """
        validate_range(check_in, check_out)
        if isinstance(guest_count, bool) or not isinstance(guest_count, int) or guest_count < 1:
            raise InvalidInput("guest_count must be a positive integer")
        if security_deposit is not None:
            security_deposit = to_decimal(security_deposit, "security_deposit")

        prop = await self.get_property(db, property_id)
        if not prop.is_active:
            raise Unavailable("This property is not accepting bookings")
        if await db.get(User, guest_id) is None:
            raise NotFound("User", guest_id)
        if guest_count > prop.max_guests:
            raise CapacityExceeded(guest_count, prop.max_guests)

        nights = (check_out - check_in).days
        min_nights = await minimum_nights(db, property_id, check_in)
        if min_nights is not None and nights < min_nights:
            raise InvalidInput(f"Stays starting on {check_in.isoformat()} must be at least {min_nights} nights")

        if not await is_available(db, property_id, check_in, check_out):
            raise Unavailable("The selected dates are not available")

        price = await self._price(db, prop, check_in, check_out, security_deposit)
        now = self.clock()
        booking = Booking(
            id=uuid.uuid4(),
            property_id=property_id,
            guest_id=guest_id,
            check_in=check_in,
            check_out=check_out,
            guest_count=guest_count,
            base_price=price.base_price,
            cleaning_fee=price.cleaning_fee,
            service_fee=price.service_fee,
            taxes=price.taxes,
            total_amount=price.total_amount,
            security_deposit=price.security_deposit,
            currency=self.config.currency,
            status=BookingStatus.PENDING.value,
            special_requests=special_requests,
            created_at=now,
            updated_at=now,
        )

        # The booking row and its nights land together or not at all.
        try:
            async with db.begin_nested():
                db.add(booking)
                db.add_all(night_claims(booking))
        except IntegrityError as exc:
            logger.info("Booking for property %s lost its nights to a concurrent booking", property_id)
            raise Unavailable("The selected dates are no longer available") from exc

        logger.info(
            "Booking %s created for property %s (%s to %s, total %s %s)",
            booking.id,
            property_id,
            check_in,
            check_out,
            booking.total_amount,
            booking.currency,
        )
        await self._emit(BookingEventType.CREATED, booking, None)
        return booking

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def approve(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        """Host accepts: ``pending -> awaiting_payment``.

        Freezes the commission split and opens the payment window. The dates are
        re-checked first, since the host may have blocked some of them after the
        request came in.

        Raises:
            Unavailable: If a night of the stay is no longer free.
        """
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.AWAITING_PAYMENT, {BookingStatus.PENDING})
        await self._ensure_available(db, booking)

        now = self.clock()
        split = calculate_commission(booking.total_amount, self.config.commission_rate, self.config.quantum)
        return await self._transition(
            db,
            booking,
            BookingStatus.AWAITING_PAYMENT,
            BookingEventType.APPROVED,
            now,
            values={
                "commission_rate": split.rate,
                "platform_commission": split.commission,
                "host_payout_amount": split.host_payout,
                "payment_expires_at": now + self.config.payment_window,
            },
        )

    async def mark_paid(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        method: str,
        reference: str,
        proof_url: str | None = None,
    ) -> Booking:
        """Guest reports payment: ``awaiting_payment | payment_failed -> awaiting_confirmation``.

        Raises:
            InvalidInput: Unsupported method, a method with no active payment
                config, or an empty reference.
        """
        if method not in self.config.payment_methods:
            raise InvalidInput(
                f"Unsupported payment method {method!r}. Accepted: {', '.join(sorted(self.config.payment_methods))}"
            )
        _require_text(reference, "payment reference")
        if method not in await active_payment_methods(db):
            raise InvalidInput(f"Payment method {method!r} is not currently accepted")

        booking = await self.get(db, booking_id)
        self._check(
            booking,
            BookingStatus.AWAITING_CONFIRMATION,
            {BookingStatus.AWAITING_PAYMENT, BookingStatus.PAYMENT_FAILED},
        )
        return await self._transition(
            db,
            booking,
            BookingStatus.AWAITING_CONFIRMATION,
            BookingEventType.PAID,
            self.clock(),
            values={
                "payment_method": method,
                "payment_reference": reference,
                "payment_proof_url": proof_url,
            },
            data={"method": method, "reference": reference},
        )

    async def retry_payment(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        """Guest starts over after a rejection: ``payment_failed -> awaiting_payment``.

        The nights are re-claimed and a fresh payment window opens.
        """
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.AWAITING_PAYMENT, {BookingStatus.PAYMENT_FAILED})

        now = self.clock()
        return await self._transition(
            db,
            booking,
            BookingStatus.AWAITING_PAYMENT,
            BookingEventType.PAYMENT_RETRY,
            now,
            values={"payment_expires_at": now + self.config.payment_window},
        )

    async def confirm_payment(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        confirmed_by: str,
        notes: str | None = None,
    ) -> Booking:
        """Admin verified the payment: ``awaiting_confirmation -> confirmed``."""
        _require_text(confirmed_by, "confirmed_by")
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.CONFIRMED, {BookingStatus.AWAITING_CONFIRMATION})

        now = self.clock()
        values: dict[str, Any] = {"payment_confirmed_by": confirmed_by, "payment_confirmed_at": now}
        if notes is not None:
            values["payment_notes"] = notes
        return await self._transition(
            db,
            booking,
            BookingStatus.CONFIRMED,
            BookingEventType.CONFIRMED,
            now,
            values=values,
            data={"confirmed_by": confirmed_by},
        )

    async def reject_payment(self, db: AsyncSession, booking_id: uuid.UUID, reason: str) -> Booking:
        """Admin could not verify the payment: ``awaiting_confirmation -> payment_failed``."""
        _require_text(reason, "reason")
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.PAYMENT_FAILED, {BookingStatus.AWAITING_CONFIRMATION})
        return await self._transition(
            db,
            booking,
            BookingStatus.PAYMENT_FAILED,
            BookingEventType.REJECTED,
            self.clock(),
            values={"payment_notes": reason},
            data={"reason": reason},
        )

    async def cancel(self, db: AsyncSession, booking_id: uuid.UUID, reason: str | None = None) -> Booking:
        """Cancel from any non-terminal status."""
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.CANCELLED)

        now = self.clock()
        return await self._transition(
            db,
            booking,
            BookingStatus.CANCELLED,
            BookingEventType.CANCELLED,
            now,
            values={"cancellation_reason": reason, "cancelled_at": now},
            data={"reason": reason},
        )

    async def complete(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        """The stay happened: ``confirmed -> completed``."""
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.COMPLETED, {BookingStatus.CONFIRMED})
        return await self._transition(db, booking, BookingStatus.COMPLETED, BookingEventType.COMPLETED, self.clock())

    async def expire(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        """The payment window closed unpaid: ``awaiting_payment -> expired``.

        Raises:
            InvalidTransition: If the booking is not awaiting payment or its
                deadline has not passed yet.
        """
        booking = await self.get(db, booking_id)
        self._check(booking, BookingStatus.EXPIRED, {BookingStatus.AWAITING_PAYMENT})

        now = self.clock()
        if booking.payment_expires_at is None or booking.payment_expires_at >= now:
            raise InvalidTransition(
                booking.status,
                BookingStatus.EXPIRED,
                allowed_transitions(booking.status) - {BookingStatus.EXPIRED},
                message=f"Payment deadline for booking {booking.id} has not passed",
            )
        return await self._transition(
            db,
            booking,
            BookingStatus.EXPIRED,
            BookingEventType.EXPIRED,
            now,
            values={"cancelled_at": now},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check(
        booking: Booking,
        target: BookingStatus,
        sources: Collection[BookingStatus] | None = None,
    ) -> None:
        """Reject the request up front if ``booking`` cannot make this move.

        ``sources`` narrows the table for operations that own only some of the
        edges into ``target`` (``approve`` and ``retry_payment`` both lead to
        ``awaiting_payment``).
        """
        allowed = allowed_transitions(booking.status)
        current = BookingStatus(booking.status)
        if target not in allowed or (sources is not None and current not in sources):
            raise InvalidTransition(current, target, allowed)

    async def _transition(
        self,
        db: AsyncSession,
        booking: Booking,
        target: BookingStatus,
        event_type: BookingEventType,
        now: datetime,
        values: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Booking:
        expected = BookingStatus(booking.status)
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == expected.value)
            .values(status=target.value, updated_at=now, **(values or {}))
            .returning(Booking)
            .execution_options(populate_existing=True, synchronize_session=False)
        )

        try:
            async with db.begin_nested():
                result = await db.execute(stmt)
                updated = result.scalar_one_or_none()
                if updated is None:
                    actual = await self._current_status(db, booking.id)
                    logger.info(
                        "Booking %s moved from %s to %s before it could become %s",
                        booking.id,
                        expected.value,
                        actual.value,
                        target.value,
                    )
                    raise ConcurrentModification(expected, actual, target, allowed_transitions(actual))

                if is_blocking(expected) and not is_blocking(target):
                    await release_nights(db, booking.id)
                elif not is_blocking(expected) and is_blocking(target):
                    await self._ensure_available(db, updated)
                    await claim_nights(db, updated)
        except Unavailable:
            # The savepoint rolled back the status change; drop the stale in-memory copy.
            await db.refresh(booking)
            raise

        logger.info("Booking %s: %s -> %s", updated.id, expected.value, target.value)
        await self._emit(event_type, updated, expected, data)
        return updated

    async def _ensure_available(self, db: AsyncSession, booking: Booking) -> None:
        """Re-check the booking's own dates against other bookings and host blackouts.

        Raises:
            Unavailable: If the host closed a night or another booking holds one.
        """
        if not await is_available(
            db, booking.property_id, booking.check_in, booking.check_out, exclude_booking_id=booking.id
        ):
            logger.info("Booking %s lost its dates on property %s", booking.id, booking.property_id)
            raise Unavailable("The selected dates are no longer available")

    async def _current_status(self, db: AsyncSession, booking_id: uuid.UUID) -> BookingStatus:
        result = await db.execute(select(Booking.status).where(Booking.id == booking_id))
        status = result.scalar_one_or_none()
        if status is None:
            raise NotFound("Booking", booking_id)
        return BookingStatus(status)

    async def _emit(
        self,
        event_type: BookingEventType,
        booking: Booking,
        previous: BookingStatus | None,
        data: dict[str, Any] | None = None,
    ) -> None:
        event = BookingEvent(
            type=event_type,
            booking_id=booking.id,
            property_id=booking.property_id,
            guest_id=booking.guest_id,
            status=booking.status,
            previous_status=previous.value if previous is not None else None,
            occurred_at=self.clock(),
            data=data or {},
        )
        try:
            await self.dispatcher.dispatch(event)
        except Exception:
            # Notification is best effort; the transition already happened.
            logger.exception("Dispatching %s for booking %s failed", event_type.value, booking.id)

"""Tests for the payment expiration sweep."""

from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.events import BookingEventType
from maxed_homes.bookings.sweeper import sweep_expired_payments
from maxed_homes.models.booking import Booking
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

pytestmark = pytest.mark.asyncio


async def _approved(
    engine: BookingEngine, db: AsyncSession, prop: Property, guest: User, check_in: date, nights: int = 2
) -> Booking:
    booking = await engine.create(db, prop.id, guest.id, check_in, check_in + timedelta(days=nights), 2)
    return await engine.approve(db, booking.id)


class TestSweepExpiredPayments:
    async def test_expires_only_overdue_bookings(
        self, db_session, booking_engine, dispatcher, clock, test_property, guest_user
    ):
        overdue = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1))
        clock.advance(hours=1)
        fresh = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 5, 1))
        pending = await booking_engine.create(
            db_session, test_property.id, guest_user.id, date(2026, 6, 1), date(2026, 6, 3), 1
        )
        clock.advance(hours=1, minutes=30)

        expired = await sweep_expired_payments(db_session, booking_engine)

        assert expired == 1
        assert (await booking_engine.get(db_session, overdue.id)).status == "expired"
        assert (await booking_engine.get(db_session, fresh.id)).status == "awaiting_payment"
        assert (await booking_engine.get(db_session, pending.id)).status == "pending"
        assert dispatcher.types().count(BookingEventType.EXPIRED) == 1

    async def test_deadline_is_exclusive(self, db_session, booking_engine, clock, test_property, guest_user):
        booking = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1))
        clock.advance(hours=2)

        assert await sweep_expired_payments(db_session, booking_engine) == 0
        assert (await booking_engine.get(db_session, booking.id)).status == "awaiting_payment"

    async def test_idempotent(self, db_session, booking_engine, clock, test_property, guest_user):
        await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1))
        await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 10))
        clock.advance(hours=3)

        assert await sweep_expired_payments(db_session, booking_engine) == 2
        assert await sweep_expired_payments(db_session, booking_engine) == 0

    async def test_paid_bookings_are_left_alone(self, db_session, booking_engine, clock, test_property, guest_user):
        booking = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1))
        await booking_engine.mark_paid(db_session, booking.id, "mtn_momo", "MP-1")
        clock.advance(hours=3)

        assert await sweep_expired_payments(db_session, booking_engine) == 0
        assert (await booking_engine.get(db_session, booking.id)).status == "awaiting_confirmation"

    async def test_skips_booking_moved_on_mid_sweep(
        self, db_session, booking_engine, clock, test_property, guest_user, monkeypatch
    ):
        """A guest pays between the sweep's query and its expire call."""
        raced = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1))
        other = await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 10))
        clock.advance(hours=3)

        real_expire = booking_engine.expire

        async def expire_after_payment(db, booking_id):
            if booking_id == raced.id:
                await booking_engine.mark_paid(db, booking_id, "mtn_momo", "late-but-paid")
            return await real_expire(db, booking_id)

        monkeypatch.setattr(booking_engine, "expire", expire_after_payment)

        assert await sweep_expired_payments(db_session, booking_engine) == 1
        assert (await booking_engine.get(db_session, raced.id)).status == "awaiting_confirmation"
        assert (await booking_engine.get(db_session, other.id)).status == "expired"

    async def test_expired_dates_become_bookable(
        self, db_session, booking_engine, clock, test_property, guest_user, other_guest
    ):
        await _approved(booking_engine, db_session, test_property, guest_user, date(2026, 4, 1), nights=3)
        clock.advance(hours=2, minutes=1)
        await sweep_expired_payments(db_session, booking_engine)

        rebooked = await booking_engine.create(
            db_session, test_property.id, other_guest.id, date(2026, 4, 1), date(2026, 4, 4), 2
        )
        assert rebooked.status == "pending"

"""Seed the database with demo users, listings and bookings.

Bookings are created through :class:`BookingEngine` so they hold their nights
and carry real prices, exactly as if guests had requested them.

Run from ``backend/``:
    python -m scripts.seed_data
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from maxed_homes.bookings.config import EngineConfig
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.payments import create_payment_config, list_payment_configs, update_payment_config
from maxed_homes.config import settings
from maxed_homes.database import async_session_factory, engine
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

USERS = {
    "host": {"email": "host@maxedhomes.test", "name": "Afi Dossou", "role": "host", "phone": "+22990000001"},
    "guest": {"email": "guest@maxedhomes.test", "name": "Koffi Mensah", "role": "guest", "phone": "+22990000002"},
    "admin": {"email": "admin@maxedhomes.test", "name": "Platform Admin", "role": "admin"},
}

PROPERTIES = [
    {
        "title": "Villa Fidjrossè Plage",
        "description": "Three-bedroom villa two minutes from the beach, with a walled garden and generator.",
        "city": "Cotonou",
        "max_guests": 6,
        "price_per_night": Decimal("45000"),
        "cleaning_fee": Decimal("10000"),
        "security_deposit": Decimal("50000"),
    },
    {
        "title": "Studio Haie Vive",
        "description": "Furnished studio in Haie Vive, close to restaurants and the airport.",
        "city": "Cotonou",
        "max_guests": 2,
        "price_per_night": Decimal("18000"),
        "cleaning_fee": Decimal("5000"),
    },
    {
        "title": "Maison Lagune",
        "description": "Family house overlooking the lagoon, air-conditioned bedrooms and a terrace.",
        "city": "Porto-Novo",
        "max_guests": 5,
        "price_per_night": Decimal("30000"),
        "cleaning_fee": Decimal("7500"),
        "security_deposit": Decimal("25000"),
    },
]

PAYMENT_ACCOUNTS = [
    {
        "payment_method": "mtn_momo",
        "account_name": "Maxed Homes SARL",
        "account_number": "+229 97 00 00 01",
        "instructions": "Send the total to this MTN MoMo number with your booking reference as the note.",
        "display_order": 1,
    },
    {
        "payment_method": "moov_momo",
        "account_name": "Maxed Homes SARL",
        "account_number": "+229 95 00 00 02",
        "instructions": "Send the total to this Moov Money number with your booking reference as the note.",
        "display_order": 2,
    },
    {
        "payment_method": "bank_transfer",
        "account_name": "Maxed Homes SARL",
        "account_number": "BJ066 01001 000000000001 17",
        "bank_name": "Ecobank Benin",
        "instructions": "Transfer the total and put your booking reference in the transfer description.",
        "display_order": 3,
    },
]


async def seed() -> None:
    """Populate an empty database. Does nothing if the demo host already exists."""
    booking_engine = BookingEngine(EngineConfig.from_settings(settings))

    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == USERS["host"]["email"]))
        if result.scalar_one_or_none() is not None:
            print(f"Demo host '{USERS['host']['email']}' already exists; nothing to do.")
            return

        # ------------------------------------------------------------------
        # 1. Users
        # ------------------------------------------------------------------
        users = {key: User(is_active=True, **data) for key, data in USERS.items()}
        session.add_all(users.values())
        await session.flush()
        print(f"Created {len(users)} users")

        # ------------------------------------------------------------------
        # 2. Properties
        # ------------------------------------------------------------------
        properties: list[Property] = []
        for data in PROPERTIES:
            prop = Property(host_id=users["host"].id, is_active=True, **data)
            session.add(prop)
            properties.append(prop)
        await session.flush()
        for prop in properties:
            print(f"   {prop.title} ({prop.city}) at {prop.price_per_night} {settings.currency}/night")

        # ------------------------------------------------------------------
        # 3. Payment accounts (the migration leaves inactive placeholders)
        # ------------------------------------------------------------------
        configs = await list_payment_configs(session, include_inactive=True)
        existing = {config.payment_method: config for config in configs}
        for account in PAYMENT_ACCOUNTS:
            fields = {**account, "is_active": True}
            method = fields.pop("payment_method")
            if method in existing:
                await update_payment_config(session, existing[method].id, fields)
            else:
                await create_payment_config(session, booking_engine.config.payment_methods, method, **fields)
        print(f"Activated {len(PAYMENT_ACCOUNTS)} payment methods")

        # ------------------------------------------------------------------
        # 4. Bookings, one per lifecycle stage
        # ------------------------------------------------------------------
        guest_id = users["guest"].id
        start = date.today() + timedelta(days=14)

        pending = await booking_engine.create(
            session, properties[0].id, guest_id, start, start + timedelta(days=3), 4
        )
        approved = await booking_engine.create(
            session, properties[1].id, guest_id, start, start + timedelta(days=2), 2
        )
        await booking_engine.approve(session, approved.id)

        confirmed = await booking_engine.create(
            session, properties[2].id, guest_id, start, start + timedelta(days=5), 3,
            special_requests="Late arrival, around 22:00",
        )
        await booking_engine.approve(session, confirmed.id)
        await booking_engine.mark_paid(session, confirmed.id, "mtn_momo", "MP240101.1200.A00001")
        await booking_engine.confirm_payment(session, confirmed.id, confirmed_by=users["admin"].email)

        await session.commit()

        print(f"Created bookings: {pending.id} (pending), {approved.id} (awaiting payment), {confirmed.id} (confirmed)")


async def main() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

"""Expire bookings whose payment window has closed.

Meant for cron, every 15 to 30 minutes. Run from ``backend/``:
    python -m scripts.sweep_expired_payments
"""

import asyncio
import logging

from maxed_homes.bookings.config import EngineConfig
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.sweeper import sweep_expired_payments
from maxed_homes.config import settings
from maxed_homes.database import async_session_factory, engine

logger = logging.getLogger("maxed_homes.scripts.sweep_expired_payments")


async def run() -> int:
    booking_engine = BookingEngine(EngineConfig.from_settings(settings))
    async with async_session_factory() as session:
        try:
            expired = await sweep_expired_payments(session, booking_engine)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Expiry sweep failed")
            raise
    logger.info("Expired %d bookings", expired)
    return expired


async def main() -> None:
    try:
        await run()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())

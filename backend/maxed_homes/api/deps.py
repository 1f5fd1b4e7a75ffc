"""Shared API dependencies — single import point for all routers.

Re-exports the database session and authentication dependencies, and hands
out the application's :class:`BookingEngine`::

    from maxed_homes.api.deps import get_booking_engine, get_current_active_user, get_db
"""

from fastapi import Request

from maxed_homes.auth.dependencies import get_current_active_user, get_current_user
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.database import get_db


def get_booking_engine(request: Request) -> BookingEngine:
    """The engine built at startup; tests override this to inject a clock and dispatcher."""
    return request.app.state.booking_engine


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_booking_engine",
]

"""SQLAlchemy models for the Maxed Homes booking backend.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from maxed_homes.models.availability import AvailabilityOverride
from maxed_homes.models.booking import Booking, BookingNight
from maxed_homes.models.payment_config import PaymentConfig
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

__all__ = [
    "AvailabilityOverride",
    "Booking",
    "BookingNight",
    "PaymentConfig",
    "Property",
    "User",
]

"""Capability checks for booking operations.

Each check answers one question about one caller and returns ``False`` when it
cannot answer, whether the data is missing or the check itself blew up. The
HTTP layer turns ``False`` into a 403 before the engine is called.
"""

import logging
from collections.abc import Callable
from functools import wraps

from maxed_homes.models.booking import Booking
from maxed_homes.models.property import Property
from maxed_homes.models.user import User

logger = logging.getLogger(__name__)


def _deny_on_error(check: Callable[..., bool]) -> Callable[..., bool]:
    @wraps(check)
    def wrapper(*args, **kwargs) -> bool:
        try:
            return bool(check(*args, **kwargs))
        except Exception:
            logger.exception("Permission check %s failed; denying", check.__name__)
            return False

    return wrapper


def _usable(user: User | None) -> bool:
    return user is not None and user.is_active


@_deny_on_error
def can_verify_payment(user: User | None) -> bool:
    """Only admins confirm or reject submitted payments."""
    return _usable(user) and user.role == "admin"


@_deny_on_error
def can_manage_payment_config(user: User | None) -> bool:
    """Only admins see inactive payment configs or change account details."""
    return _usable(user) and user.role == "admin"


@_deny_on_error
def can_act_as_guest(user: User | None, booking: Booking | None) -> bool:
    """The booking's own guest: mark paid, retry payment, cancel."""
    return _usable(user) and booking is not None and booking.guest_id == user.id


@_deny_on_error
def can_manage_booking(user: User | None, prop: Property | None) -> bool:
    """The property's host, or an admin: approve, cancel, complete."""
    if not _usable(user):
        return False
    if user.role == "admin":
        return True
    return prop is not None and prop.host_id == user.id


@_deny_on_error
def can_view_booking(user: User | None, booking: Booking | None, prop: Property | None) -> bool:
    if booking is None:
        return False
    return can_act_as_guest(user, booking) or can_manage_booking(user, prop)

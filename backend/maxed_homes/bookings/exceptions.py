"""Booking engine errors.

Every error carries a stable ``code`` and serialises with :meth:`BookingError.to_dict`
so HTTP (or any other) callers can surface it without string parsing.
"""

import uuid
from collections.abc import Iterable
from typing import Any

from maxed_homes.bookings.states import BookingStatus


class BookingError(Exception):
    """Base class for every error raised by the booking core."""

    code = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvalidInput(BookingError):
    """A precondition on the arguments was violated (e.g. check-out not after check-in)."""

    code = "invalid_input"


class NotFound(BookingError):
    """The booking (or property) does not exist."""

    code = "not_found"

    def __init__(self, resource: str, identifier: uuid.UUID | str) -> None:
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = str(identifier)


class Unavailable(BookingError):
    """The requested dates clash with a blocking booking or a host override."""

    code = "unavailable"


class CapacityExceeded(BookingError):
    """More guests than the property can host."""

    code = "capacity_exceeded"

    def __init__(self, guest_count: int, max_guests: int) -> None:
        super().__init__(f"{guest_count} guests requested but the property hosts at most {max_guests}")
        self.guest_count = guest_count
        self.max_guests = max_guests

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "guest_count": self.guest_count, "max_guests": self.max_guests}


class InvalidTransition(BookingError):
    """The requested status change is not in the transition table.

    Carries the booking's actual status and what it may move to, so callers can
    reconcile their view without re-fetching blindly.
    """

    code = "invalid_transition"

    def __init__(
        self,
        current: BookingStatus | str,
        target: BookingStatus | str,
        allowed: Iterable[BookingStatus | str],
        message: str | None = None,
    ) -> None:
        self.current = BookingStatus(current)
        self.target = BookingStatus(target)
        self.allowed = sorted(BookingStatus(status).value for status in allowed)
        super().__init__(
            message
            or (
                f"Cannot move booking from '{self.current.value}' to '{self.target.value}'. "
                f"Allowed: {', '.join(self.allowed) or 'none'}"
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "current_status": self.current.value,
            "target_status": self.target.value,
            "allowed": self.allowed,
        }


class ConcurrentModification(InvalidTransition):
    """The conditional update matched no row: another actor changed the status first."""

    code = "concurrent_modification"

    def __init__(
        self,
        expected: BookingStatus | str,
        current: BookingStatus | str,
        target: BookingStatus | str,
        allowed: Iterable[BookingStatus | str],
    ) -> None:
        self.expected = BookingStatus(expected)
        super().__init__(
            current,
            target,
            allowed,
            message=(
                f"Booking moved from '{BookingStatus(expected).value}' to "
                f"'{BookingStatus(current).value}' before it could become '{BookingStatus(target).value}'"
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "expected_status": self.expected.value}

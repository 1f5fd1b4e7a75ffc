"""Booking state machine: the single transition table every status change obeys."""

from enum import Enum


class BookingStatus(str, Enum):
    """Every status a booking can be in."""

    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PAYMENT_FAILED = "payment_failed"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    EXPIRED = "expired"


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.AWAITING_PAYMENT, BookingStatus.CANCELLED}),
    BookingStatus.AWAITING_PAYMENT: frozenset(
        {BookingStatus.AWAITING_CONFIRMATION, BookingStatus.EXPIRED, BookingStatus.CANCELLED}
    ),
    BookingStatus.AWAITING_CONFIRMATION: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.PAYMENT_FAILED, BookingStatus.CANCELLED}
    ),
    # A guest may go back to awaiting payment, or resubmit proof straight away.
    BookingStatus.PAYMENT_FAILED: frozenset(
        {BookingStatus.AWAITING_PAYMENT, BookingStatus.AWAITING_CONFIRMATION, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.EXPIRED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)

# Statuses that hold the property's nights against other bookings.
BLOCKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {
        BookingStatus.PENDING,
        BookingStatus.AWAITING_PAYMENT,
        BookingStatus.AWAITING_CONFIRMATION,
        BookingStatus.CONFIRMED,
    }
)


def allowed_transitions(current: BookingStatus | str) -> frozenset[BookingStatus]:
    """Return the statuses reachable from ``current`` in one step.

    Unknown statuses have no outgoing transitions.
    """
    try:
        status = BookingStatus(current)
    except ValueError:
        return frozenset()
    return BOOKING_TRANSITIONS[status]


def is_valid_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    """Whether ``current -> target`` is an edge of the transition table."""
    try:
        target_status = BookingStatus(target)
    except ValueError:
        return False
    return target_status in allowed_transitions(current)


def is_terminal(status: BookingStatus | str) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def is_blocking(status: BookingStatus | str) -> bool:
    return BookingStatus(status) in BLOCKING_STATUSES

"""Domain events emitted after each successful booking transition.

The engine never sends email itself; a notification service subscribes by
providing a :class:`BookingEventDispatcher`.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class BookingEventType(str, Enum):
    CREATED = "booking.created"
    APPROVED = "booking.approved"
    PAID = "booking.paid"
    PAYMENT_RETRY = "booking.payment_retry"
    CONFIRMED = "booking.confirmed"
    REJECTED = "booking.payment_rejected"
    CANCELLED = "booking.cancelled"
    EXPIRED = "booking.expired"
    COMPLETED = "booking.completed"


@dataclass(frozen=True)
class BookingEvent:
    """What happened to which booking, and when."""

    type: BookingEventType
    booking_id: uuid.UUID
    property_id: uuid.UUID
    guest_id: uuid.UUID
    status: str
    previous_status: str | None
    occurred_at: datetime
    data: dict[str, Any] = field(default_factory=dict)


class BookingEventDispatcher(Protocol):
    """Receives events from :class:`~maxed_homes.bookings.engine.BookingEngine`.

    ``dispatch`` is awaited right after the status update, inside the caller's
    still-open transaction. If that transaction later rolls back, the event has
    already been delivered for a change that never persisted. Subscribers with
    side effects (email, SMS) should re-read the booking or queue the work until
    after commit. Exceptions raised here are logged and never undo the transition.
    """

    async def dispatch(self, event: BookingEvent) -> None: ...


class LoggingDispatcher:
    """Default dispatcher: writes each event to the log."""

    async def dispatch(self, event: BookingEvent) -> None:
        logger.info(
            "Booking event %s for booking %s (%s -> %s)",
            event.type.value,
            event.booking_id,
            event.previous_status,
            event.status,
        )


class RecordingDispatcher:
    """Keeps events in memory; handy for tests and for batching."""

    def __init__(self) -> None:
        self.events: list[BookingEvent] = []

    async def dispatch(self, event: BookingEvent) -> None:
        self.events.append(event)

    def types(self) -> list[BookingEventType]:
        return [event.type for event in self.events]

"""Booking models — reservations and the nights they hold."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from maxed_homes.bookings.states import BookingStatus
from maxed_homes.database import Base, UUIDPrimaryKeyMixin

_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in BookingStatus)


class Booking(UUIDPrimaryKeyMixin, Base):
    """A guest's reservation of a property for a half-open date range.

    ``status`` is written only by :class:`maxed_homes.bookings.engine.BookingEngine`.
    Rows are never deleted; cancelled, expired and completed bookings stay for history.
    """

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    guest_count: Mapped[int] = mapped_column(nullable=False)

    # Guest-facing price breakdown
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    service_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    taxes: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="XOF")

    # Frozen at approval
    commission_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), default=None)
    platform_commission: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    host_payout_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)

    status: Mapped[str] = mapped_column(
        String(50),
        default=BookingStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Payment metadata, filled in as the booking advances
    payment_method: Mapped[str | None] = mapped_column(String(50), default=None)
    payment_reference: Mapped[str | None] = mapped_column(String(255), default=None)
    payment_proof_url: Mapped[str | None] = mapped_column(Text, default=None)
    payment_confirmed_by: Mapped[str | None] = mapped_column(String(255), default=None)
    payment_confirmed_at: Mapped[datetime | None] = mapped_column(default=None)
    payment_expires_at: Mapped[datetime | None] = mapped_column(default=None)
    payment_notes: Mapped[str | None] = mapped_column(Text, default=None)

    special_requests: Mapped[str | None] = mapped_column(Text, default=None)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_dates"),
        CheckConstraint("guest_count > 0", name="ck_bookings_guest_count"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_bookings_status"),
        CheckConstraint(
            "total_amount = base_price + cleaning_fee + service_fee + taxes",
            name="ck_bookings_total_amount",
        ),
        Index("ix_bookings_property_status", "property_id", "status"),
        Index("ix_bookings_payment_expires_at", "payment_expires_at"),
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, guest_id={self.guest_id}, status={self.status})>"
        )


class BookingNight(Base):
    """One night of a property held by a booking in a blocking status.

    The composite primary key makes two live bookings on the same night of the
    same property impossible, whatever the application-level check decided.
    """

    __tablename__ = "booking_nights"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        primary_key=True,
    )
    night: Mapped[date] = mapped_column(Date, primary_key=True)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<BookingNight(property_id={self.property_id}, night={self.night}, booking_id={self.booking_id})>"

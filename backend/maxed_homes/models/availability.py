"""Availability override model — host-set per-date blackout and price overrides."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Numeric, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from maxed_homes.database import Base, UUIDPrimaryKeyMixin


class AvailabilityOverride(UUIDPrimaryKeyMixin, Base):
    """One host decision about one date of one property."""

    __tablename__ = "availability_overrides"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    price_override: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    minimum_nights_override: Mapped[int | None] = mapped_column(default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("property_id", "date", name="uq_availability_overrides_property_date"),
        CheckConstraint(
            "price_override IS NULL OR price_override >= 0",
            name="ck_availability_overrides_price",
        ),
        CheckConstraint(
            "minimum_nights_override IS NULL OR minimum_nights_override >= 1",
            name="ck_availability_overrides_min_nights",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilityOverride(property_id={self.property_id}, date={self.day}, "
            f"is_available={self.is_available})>"
        )

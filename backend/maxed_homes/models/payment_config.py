"""Payment configuration model: where guests send money for each accepted method.

Account details live in the database, managed by admins, so the numbers a
guest is shown cannot be altered client-side.
"""

from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from maxed_homes.database import Base, UUIDPrimaryKeyMixin


class PaymentConfig(UUIDPrimaryKeyMixin, Base):
    """Account details and guest instructions for one payment method."""

    __tablename__ = "payment_config"

    payment_method: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_number: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str | None] = mapped_column(String(255), default=None)  # bank transfers only
    instructions: Mapped[str | None] = mapped_column(Text, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    display_order: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_payment_config_active_order", "is_active", "display_order"),)

    def __repr__(self) -> str:
        return f"<PaymentConfig(payment_method={self.payment_method}, is_active={self.is_active})>"

"""booking_engine

Revision ID: 0001_booking_engine
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_booking_engine'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = (
    "pending",
    "awaiting_payment",
    "awaiting_confirmation",
    "payment_failed",
    "confirmed",
    "cancelled",
    "completed",
    "expired",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("role", sa.String(50), nullable=False, server_default="guest"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "properties",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("host_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("cleaning_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("security_deposit", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_properties_host_id", "properties", ["host_id"])

    op.create_table(
        "availability_overrides",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "property_id", sa.UUID(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("price_override", sa.Numeric(10, 2), nullable=True),
        sa.Column("minimum_nights_override", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("property_id", "date", name="uq_availability_overrides_property_date"),
        sa.CheckConstraint(
            "price_override IS NULL OR price_override >= 0",
            name="ck_availability_overrides_price",
        ),
        sa.CheckConstraint(
            "minimum_nights_override IS NULL OR minimum_nights_override >= 1",
            name="ck_availability_overrides_min_nights",
        ),
    )
    op.create_index("ix_availability_overrides_property_id", "availability_overrides", ["property_id"])

    statuses = ", ".join(f"'{s}'" for s in BOOKING_STATUSES)
    op.create_table(
        "bookings",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "property_id", sa.UUID(), sa.ForeignKey("properties.id", ondelete="RESTRICT"), nullable=False
        ),
        sa.Column("guest_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("cleaning_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("service_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("taxes", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("security_deposit", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="XOF"),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=True),
        sa.Column("platform_commission", sa.Numeric(10, 2), nullable=True),
        sa.Column("host_payout_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("payment_proof_url", sa.Text(), nullable=True),
        sa.Column("payment_confirmed_by", sa.String(255), nullable=True),
        sa.Column("payment_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("payment_expires_at", sa.DateTime(), nullable=True),
        sa.Column("payment_notes", sa.Text(), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("check_out > check_in", name="ck_bookings_dates"),
        sa.CheckConstraint("guest_count > 0", name="ck_bookings_guest_count"),
        sa.CheckConstraint(f"status IN ({statuses})", name="ck_bookings_status"),
        sa.CheckConstraint(
            "total_amount = base_price + cleaning_fee + service_fee + taxes",
            name="ck_bookings_total_amount",
        ),
    )
    op.create_index("ix_bookings_property_id", "bookings", ["property_id"])
    op.create_index("ix_bookings_guest_id", "bookings", ["guest_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_property_status", "bookings", ["property_id", "status"])
    op.create_index("ix_bookings_payment_expires_at", "bookings", ["payment_expires_at"])

    # One row per held night; the primary key is what rules out double-booking.
    op.create_table(
        "booking_nights",
        sa.Column(
            "property_id", sa.UUID(), sa.ForeignKey("properties.id", ondelete="RESTRICT"), primary_key=True
        ),
        sa.Column("night", sa.Date(), primary_key=True),
        sa.Column(
            "booking_id", sa.UUID(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
        ),
    )
    op.create_index("ix_booking_nights_booking_id", "booking_nights", ["booking_id"])


def downgrade() -> None:
    op.drop_index("ix_booking_nights_booking_id", table_name="booking_nights")
    op.drop_table("booking_nights")
    op.drop_index("ix_bookings_payment_expires_at", table_name="bookings")
    op.drop_index("ix_bookings_property_status", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_guest_id", table_name="bookings")
    op.drop_index("ix_bookings_property_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_availability_overrides_property_id", table_name="availability_overrides")
    op.drop_table("availability_overrides")
    op.drop_index("ix_properties_host_id", table_name="properties")
    op.drop_table("properties")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

"""payment_config

Revision ID: 0002_payment_config
Revises: 0001_booking_engine
Create Date: 2026-10-18 14:00:00.000000

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_payment_config'
down_revision: Union[str, Sequence[str], None] = '0001_booking_engine'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    payment_config = op.create_table(
        "payment_config",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("payment_method", sa.String(50), nullable=False, unique=True),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("account_number", sa.String(255), nullable=False),
        sa.Column("bank_name", sa.String(255), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_payment_config_active_order", "payment_config", ["is_active", "display_order"])

    # Inactive placeholders: an admin fills in the real accounts before enabling them.
    op.bulk_insert(
        payment_config,
        [
            {
                "id": uuid.UUID("6f1c2a8e-8d4b-4c53-9a57-0b1e4f7d2a01"),
                "payment_method": "mtn_momo",
                "account_name": "Maxed Homes",
                "account_number": "+229 00 00 00 00",
                "bank_name": None,
                "instructions": "Send money to this MTN MoMo number. Put your booking reference in the transaction note.",
                "is_active": False,
                "display_order": 1,
            },
            {
                "id": uuid.UUID("6f1c2a8e-8d4b-4c53-9a57-0b1e4f7d2a02"),
                "payment_method": "moov_momo",
                "account_name": "Maxed Homes",
                "account_number": "+229 00 00 00 00",
                "bank_name": None,
                "instructions": "Send money to this Moov MoMo number. Put your booking reference in the transaction note.",
                "is_active": False,
                "display_order": 2,
            },
            {
                "id": uuid.UUID("6f1c2a8e-8d4b-4c53-9a57-0b1e4f7d2a03"),
                "payment_method": "bank_transfer",
                "account_name": "Maxed Homes",
                "account_number": "XXXX-XXXX-XXXX-XXXX",
                "bank_name": "Your Bank Name",
                "instructions": "Transfer to this bank account. Put your booking reference in the transfer description.",
                "is_active": False,
                "display_order": 3,
            },
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_payment_config_active_order", table_name="payment_config")
    op.drop_table("payment_config")

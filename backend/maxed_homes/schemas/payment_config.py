"""Pydantic v2 request/response schemas for payment configuration endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PaymentConfigCreate(BaseModel):
    """Account details for a payment method the platform supports."""

    payment_method: str = Field(..., min_length=1, max_length=50)
    account_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=255)
    bank_name: str | None = Field(None, max_length=255)
    instructions: str | None = None
    is_active: bool = True
    display_order: int = Field(0, ge=0)


class PaymentConfigUpdate(BaseModel):
    """Partial update. The payment method itself cannot be changed."""

    account_name: str | None = Field(None, min_length=1, max_length=255)
    account_number: str | None = Field(None, min_length=1, max_length=255)
    bank_name: str | None = Field(None, max_length=255)
    instructions: str | None = None
    is_active: bool | None = None
    display_order: int | None = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PaymentInstructionsResponse(BaseModel):
    """What a guest needs to send money: no admin bookkeeping fields."""

    payment_method: str
    account_name: str
    account_number: str
    bank_name: str | None = None
    instructions: str | None = None
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class PaymentConfigResponse(PaymentInstructionsResponse):
    id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

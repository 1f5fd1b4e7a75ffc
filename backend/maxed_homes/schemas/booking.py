"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class _StayDates(BaseModel):
    property_id: uuid.UUID
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_dates(self):
        """Validate that check_out is strictly after check_in."""
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class QuoteRequest(_StayDates):
    """Price a stay without booking it."""

    security_deposit: Decimal | None = Field(None, ge=0)


class BookingCreate(_StayDates):
    """Schema for requesting a booking. The caller becomes the guest."""

    guest_count: int = Field(1, ge=1)
    security_deposit: Decimal | None = Field(None, ge=0)
    special_requests: str | None = Field(None, max_length=2000)


class MarkPaidRequest(BaseModel):
    """Guest's report of an off-platform payment."""

    method: str = Field(..., min_length=1, max_length=50)
    reference: str = Field(..., min_length=1, max_length=255)
    proof_url: str | None = None


class ConfirmPaymentRequest(BaseModel):
    notes: str | None = None


class RejectPaymentRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CancelRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    """Price breakdown for a stay, plus whether the dates are free right now."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    nights: int
    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxes: Decimal
    total_amount: Decimal
    security_deposit: Decimal
    currency: str
    available: bool


class AvailabilityResponse(BaseModel):
    property_id: uuid.UUID
    check_in: date
    check_out: date
    available: bool
    unavailable_dates: list[date]


class BookingResponse(BaseModel):
    """Full booking record, including the frozen commission split and payment metadata."""

    id: uuid.UUID
    property_id: uuid.UUID
    guest_id: uuid.UUID
    check_in: date
    check_out: date
    guest_count: int
    status: str

    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxes: Decimal
    total_amount: Decimal
    security_deposit: Decimal
    currency: str

    commission_rate: Decimal | None = None
    platform_commission: Decimal | None = None
    host_payout_amount: Decimal | None = None

    payment_method: str | None = None
    payment_reference: str | None = None
    payment_proof_url: str | None = None
    payment_confirmed_by: str | None = None
    payment_confirmed_at: datetime | None = None
    payment_expires_at: datetime | None = None
    payment_notes: str | None = None

    special_requests: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SweepResponse(BaseModel):
    expired: int

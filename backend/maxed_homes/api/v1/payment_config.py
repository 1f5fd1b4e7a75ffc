"""Payment configuration API router.

Guests read the active payment instructions while a booking awaits payment;
admins manage the account details behind them.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.api.deps import get_booking_engine, get_current_active_user, get_db
from maxed_homes.auth.permissions import can_manage_payment_config
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.payments import (
    create_payment_config,
    list_payment_configs,
    update_payment_config,
)
from maxed_homes.models.payment_config import PaymentConfig
from maxed_homes.models.user import User
from maxed_homes.schemas.payment_config import (
    PaymentConfigCreate,
    PaymentConfigResponse,
    PaymentConfigUpdate,
    PaymentInstructionsResponse,
)

router = APIRouter(prefix="/api/v1/payment-config", tags=["payment-config"])


def _require_admin(user: User) -> None:
    if not can_manage_payment_config(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can manage payment configuration",
        )


@router.get(
    "",
    response_model=list[PaymentInstructionsResponse],
    summary="Active payment methods and where to send the money",
)
async def get_payment_instructions(db: AsyncSession = Depends(get_db)) -> list[PaymentConfig]:
    return await list_payment_configs(db)


@router.get(
    "/all",
    response_model=list[PaymentConfigResponse],
    summary="Every payment config, including inactive ones (admin)",
)
async def get_all_payment_configs(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[PaymentConfig]:
    _require_admin(current_user)
    return await list_payment_configs(db, include_inactive=True)


@router.post(
    "",
    response_model=PaymentConfigResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add account details for a payment method (admin)",
)
async def add_payment_config(
    body: PaymentConfigCreate,
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_active_user),
) -> PaymentConfig:
    _require_admin(current_user)
    return await create_payment_config(db, engine.config.payment_methods, **body.model_dump())


@router.patch(
    "/{config_id}",
    response_model=PaymentConfigResponse,
    summary="Edit or deactivate a payment config (admin)",
)
async def edit_payment_config(
    config_id: uuid.UUID,
    body: PaymentConfigUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PaymentConfig:
    _require_admin(current_user)
    return await update_payment_config(db, config_id, body.model_dump(exclude_unset=True))

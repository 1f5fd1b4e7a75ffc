"""Payment method configuration.

Admins keep one :class:`PaymentConfig` row per accepted method. Guests awaiting
payment are shown the active rows in ``display_order``, and
:meth:`BookingEngine.mark_paid` only accepts a method whose row is active.
"""

import logging
import uuid
from collections.abc import Collection
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.bookings.exceptions import InvalidInput, NotFound
from maxed_homes.models.payment_config import PaymentConfig

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {"account_name", "account_number", "bank_name", "instructions", "is_active", "display_order"}
)
_REQUIRED_FIELDS = frozenset({"account_name", "account_number", "is_active", "display_order"})


async def list_payment_configs(db: AsyncSession, include_inactive: bool = False) -> list[PaymentConfig]:
    query = select(PaymentConfig).order_by(PaymentConfig.display_order, PaymentConfig.payment_method)
    if not include_inactive:
        query = query.where(PaymentConfig.is_active.is_(True))
    result = await db.execute(query.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def active_payment_methods(db: AsyncSession) -> set[str]:
    result = await db.execute(select(PaymentConfig.payment_method).where(PaymentConfig.is_active.is_(True)))
    return set(result.scalars().all())


async def get_payment_config(db: AsyncSession, config_id: uuid.UUID) -> PaymentConfig:
    config = await db.get(PaymentConfig, config_id)
    if config is None:
        raise NotFound("Payment config", config_id)
    return config


async def create_payment_config(
    db: AsyncSession,
    supported_methods: Collection[str],
    payment_method: str,
    account_name: str,
    account_number: str,
    bank_name: str | None = None,
    instructions: str | None = None,
    is_active: bool = True,
    display_order: int = 0,
) -> PaymentConfig:
    """Add account details for a payment method.

    Raises:
        InvalidInput: If the method is not one the platform supports, or it
            already has a config (edit that one instead).
    """
    if payment_method not in supported_methods:
        raise InvalidInput(
            f"Unsupported payment method {payment_method!r}. Supported: {', '.join(sorted(supported_methods))}"
        )

    config = PaymentConfig(
        payment_method=payment_method,
        account_name=account_name,
        account_number=account_number,
        bank_name=bank_name,
        instructions=instructions,
        is_active=is_active,
        display_order=display_order,
    )
    try:
        async with db.begin_nested():
            db.add(config)
    except IntegrityError as exc:
        raise InvalidInput(
            f"A payment config for {payment_method!r} already exists. Edit the existing one instead."
        ) from exc

    await db.refresh(config)
    logger.info("Payment config created for %s (active=%s)", payment_method, is_active)
    return config


async def update_payment_config(db: AsyncSession, config_id: uuid.UUID, changes: dict[str, Any]) -> PaymentConfig:
    """Apply a partial update. The method itself cannot be renamed.

    Raises:
        NotFound: Unknown config id.
        InvalidInput: If ``changes`` touches a field that is not editable, or
            clears a required one.
    """
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise InvalidInput(f"Cannot change {', '.join(sorted(unknown))}")
    cleared = sorted(field for field in _REQUIRED_FIELDS & set(changes) if changes[field] is None)
    if cleared:
        raise InvalidInput(f"{', '.join(cleared)} cannot be empty")

    config = await get_payment_config(db, config_id)
    for field, value in changes.items():
        setattr(config, field, value)
    await db.flush()
    await db.refresh(config)

    logger.info("Payment config %s updated: %s", config.payment_method, ", ".join(sorted(changes)) or "no changes")
    return config

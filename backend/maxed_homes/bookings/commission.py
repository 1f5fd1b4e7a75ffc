"""Platform commission, computed once at approval and frozen onto the booking."""

from dataclasses import dataclass
from decimal import Decimal

from maxed_homes.bookings.exceptions import InvalidInput
from maxed_homes.bookings.pricing import DEFAULT_QUANTUM, Amount, round_money, to_decimal

DEFAULT_COMMISSION_RATE = Decimal("0.10")


@dataclass(frozen=True)
class CommissionBreakdown:
    """Split of a booking total between the platform and the host."""

    rate: Decimal
    commission: Decimal
    host_payout: Decimal


def calculate_commission(
    total_amount: Amount,
    rate: Amount = DEFAULT_COMMISSION_RATE,
    quantum: Decimal = DEFAULT_QUANTUM,
) -> CommissionBreakdown:
    """Return ``commission = round(total * rate)`` and ``host_payout = total - commission``."""
    total = to_decimal(total_amount, "total_amount")
    commission_rate = to_decimal(rate, "rate")
    if total < 0:
        raise InvalidInput("total_amount must not be negative")
    if not Decimal("0") <= commission_rate <= Decimal("1"):
        raise InvalidInput("commission rate must be between 0 and 1")

    commission = round_money(total * commission_rate, quantum)
    return CommissionBreakdown(
        rate=commission_rate,
        commission=commission,
        host_payout=total - commission,
    )

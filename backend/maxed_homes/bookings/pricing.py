"""Booking price calculation: the one formula every booking is priced with.

Formula::

    base_price   = price_per_night * nights   (or the sum of per-night rates)
    service_fee  = round(base_price * service_fee_rate)
    subtotal     = base_price + cleaning_fee + service_fee
    taxes        = round(subtotal * tax_rate)
    total_amount = subtotal + taxes

Rounding is half-up to the currency's smallest unit. The security deposit is
carried alongside but never included in ``total_amount``: it is held and
refunded separately.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from maxed_homes.bookings.exceptions import InvalidInput

DEFAULT_SERVICE_FEE_RATE = Decimal("0.12")
DEFAULT_TAX_RATE = Decimal("0.08")
DEFAULT_QUANTUM = Decimal("1")

Amount = Decimal | int | float | str


def to_decimal(value: Amount, field: str = "amount") -> Decimal:
    """Convert user-supplied numbers to ``Decimal`` without float artefacts."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInput(f"{field} is not a number: {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite")
    return result


def round_money(value: Decimal, quantum: Decimal = DEFAULT_QUANTUM) -> Decimal:
    """Round half-up to ``quantum`` (``Decimal("1")`` for XOF, ``Decimal("0.01")`` for cents)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    """Guest-facing price of a stay."""

    nights: int
    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxes: Decimal
    total_amount: Decimal
    security_deposit: Decimal = Decimal("0")

    @property
    def subtotal(self) -> Decimal:
        return self.base_price + self.cleaning_fee + self.service_fee


def _non_negative(value: Amount, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise InvalidInput(f"{field} must not be negative")
    return amount


def calculate_pricing(
    price_per_night: Amount,
    nights: int,
    cleaning_fee: Amount = 0,
    service_fee_rate: Amount = DEFAULT_SERVICE_FEE_RATE,
    tax_rate: Amount = DEFAULT_TAX_RATE,
    security_deposit: Amount = 0,
    quantum: Decimal = DEFAULT_QUANTUM,
    nightly_rates: Sequence[Amount] | None = None,
) -> PriceBreakdown:
    """Price a stay.

    Args:
        price_per_night: Nightly rate, used when ``nightly_rates`` is not given.
        nights: Number of nights, at least one.
        cleaning_fee: One-off cleaning fee.
        service_fee_rate: Fraction of the base price charged as service fee.
        tax_rate: Fraction of the subtotal charged as tax.
        security_deposit: Refundable deposit, passed through untouched.
        quantum: Smallest currency unit to round to.
        nightly_rates: Optional per-night rates (host price overrides); must
            have exactly ``nights`` entries.

    Raises:
        InvalidInput: On negative amounts, a non-positive night count or a
            ``nightly_rates`` length mismatch.
    """
    if isinstance(nights, bool) or not isinstance(nights, int) or nights < 1:
        raise InvalidInput("nights must be a positive integer")

    rate = _non_negative(price_per_night, "price_per_night")
    cleaning = _non_negative(cleaning_fee, "cleaning_fee")
    deposit = _non_negative(security_deposit, "security_deposit")
    service_rate = _non_negative(service_fee_rate, "service_fee_rate")
    taxes_rate = _non_negative(tax_rate, "tax_rate")

    if nightly_rates is not None:
        if len(nightly_rates) != nights:
            raise InvalidInput(f"expected {nights} nightly rates, got {len(nightly_rates)}")
        base_price = sum((_non_negative(r, "nightly rate") for r in nightly_rates), Decimal("0"))
    else:
        base_price = rate * nights

    service_fee = round_money(base_price * service_rate, quantum)
    subtotal = base_price + cleaning + service_fee
    taxes = round_money(subtotal * taxes_rate, quantum)

    return PriceBreakdown(
        nights=nights,
        base_price=base_price,
        cleaning_fee=cleaning,
        service_fee=service_fee,
        taxes=taxes,
        total_amount=subtotal + taxes,
        security_deposit=deposit,
    )

"""Engine configuration, passed in explicitly rather than read from globals."""

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from maxed_homes.bookings.commission import DEFAULT_COMMISSION_RATE
from maxed_homes.bookings.pricing import DEFAULT_QUANTUM, DEFAULT_SERVICE_FEE_RATE, DEFAULT_TAX_RATE
from maxed_homes.config import Settings


@dataclass(frozen=True)
class EngineConfig:
    """Everything the booking engine needs to price, approve and expire bookings."""

    commission_rate: Decimal = DEFAULT_COMMISSION_RATE
    payment_deadline_hours: int = 2
    service_fee_rate: Decimal = DEFAULT_SERVICE_FEE_RATE
    tax_rate: Decimal = DEFAULT_TAX_RATE
    currency: str = "XOF"
    quantum: Decimal = DEFAULT_QUANTUM
    payment_methods: frozenset[str] = field(
        default_factory=lambda: frozenset({"mtn_momo", "moov_momo", "bank_transfer"})
    )

    @property
    def payment_window(self) -> timedelta:
        return timedelta(hours=self.payment_deadline_hours)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            commission_rate=settings.platform_commission_rate,
            payment_deadline_hours=settings.payment_deadline_hours,
            service_fee_rate=settings.service_fee_rate,
            tax_rate=settings.tax_rate,
            currency=settings.currency,
            quantum=settings.currency_quantum,
            payment_methods=frozenset(settings.payment_methods),
        )

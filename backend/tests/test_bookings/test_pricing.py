"""Unit tests for booking price calculation."""

from decimal import Decimal

import pytest

from maxed_homes.bookings.exceptions import InvalidInput
from maxed_homes.bookings.pricing import calculate_pricing, round_money, to_decimal


class TestCalculatePricing:
    """The one formula every booking is priced with."""

    def test_three_nights_with_cleaning_fee(self):
        price = calculate_pricing(100, 3, 20)
        assert price.nights == 3
        assert price.base_price == Decimal("300")
        assert price.service_fee == Decimal("36")
        assert price.taxes == Decimal("28")
        assert price.total_amount == Decimal("384")

    def test_total_is_sum_of_components(self):
        price = calculate_pricing("45000", 4, "10000")
        assert price.total_amount == price.base_price + price.cleaning_fee + price.service_fee + price.taxes

    def test_security_deposit_not_in_total(self):
        without = calculate_pricing(100, 3, 20)
        with_deposit = calculate_pricing(100, 3, 20, security_deposit=500)
        assert with_deposit.security_deposit == Decimal("500")
        assert with_deposit.total_amount == without.total_amount

    def test_rounds_half_up_to_whole_units(self):
        # base 105 -> service fee 12.6 -> 13; subtotal 118 -> taxes 9.44 -> 9
        price = calculate_pricing(35, 3)
        assert price.service_fee == Decimal("13")
        assert price.taxes == Decimal("9")

    def test_cent_quantum(self):
        price = calculate_pricing("99.99", 1, quantum=Decimal("0.01"))
        assert price.service_fee == Decimal("12.00")
        assert price.taxes == Decimal("8.96")
        assert price.total_amount == Decimal("120.95")

    def test_custom_rates(self):
        price = calculate_pricing(100, 2, service_fee_rate="0", tax_rate="0.18")
        assert price.service_fee == Decimal("0")
        assert price.taxes == Decimal("36")
        assert price.total_amount == Decimal("236")

    def test_nightly_rates_replace_flat_rate(self):
        price = calculate_pricing(100, 3, 0, nightly_rates=[100, 150, 100])
        assert price.base_price == Decimal("350")
        assert price.service_fee == Decimal("42")

    def test_nightly_rates_length_must_match(self):
        with pytest.raises(InvalidInput):
            calculate_pricing(100, 3, nightly_rates=[100, 100])

    @pytest.mark.parametrize("nights", [0, -1, 2.5, True])
    def test_rejects_bad_night_count(self, nights):
        with pytest.raises(InvalidInput):
            calculate_pricing(100, nights)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"price_per_night": -1},
            {"cleaning_fee": -5},
            {"security_deposit": -10},
            {"tax_rate": "-0.1"},
        ],
    )
    def test_rejects_negative_amounts(self, kwargs):
        args = {"price_per_night": 100, "nights": 2, **kwargs}
        with pytest.raises(InvalidInput):
            calculate_pricing(**args)


class TestMoneyHelpers:
    def test_round_money_half_up(self):
        assert round_money(Decimal("2.5")) == Decimal("3")
        assert round_money(Decimal("2.49")) == Decimal("2")
        assert round_money(Decimal("1.005"), Decimal("0.01")) == Decimal("1.01")

    def test_to_decimal_avoids_float_artefacts(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(InvalidInput):
            to_decimal("abc")

    def test_to_decimal_rejects_infinity(self):
        with pytest.raises(InvalidInput):
            to_decimal("Infinity")

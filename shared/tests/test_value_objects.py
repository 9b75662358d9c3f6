"""Money and rental period value objects."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Money, RentalPeriod, money_sum


class TestMoney:
    def test_amounts_are_quantized(self):
        assert Money(Decimal("10.005")).amount == Decimal("10.01")
        assert Money("99.9").amount == Decimal("99.90")

    def test_negative_amount_is_rejected(self):
        with pytest.raises(ValidationError):
            Money(Decimal("-0.01"))

    def test_unsupported_currency(self):
        with pytest.raises(ValidationError):
            Money(Decimal("1"), "XYZ")

    def test_arithmetic(self):
        total = Money(Decimal("1000")) + Money(Decimal("500"))

        assert total == Money(Decimal("1500"))
        assert total - Money(Decimal("200")) == Money(Decimal("1300"))
        assert total >= Money(Decimal("1500"))
        assert not total > Money(Decimal("1500"))

    def test_subtracting_below_zero_is_rejected(self):
        with pytest.raises(ValidationError):
            Money(Decimal("100")) - Money(Decimal("200"))

    def test_deduct_floors_at_zero(self):
        assert Money(Decimal("500")).deduct(Money(Decimal("900"))) == Money.zero()
        assert Money(Decimal("500")).deduct(Money(Decimal("200"))) == Money(Decimal("300"))

    def test_currencies_do_not_mix(self):
        with pytest.raises(ValueError):
            Money(Decimal("1"), "INR") + Money(Decimal("1"), "USD")

    def test_sum_and_primitive(self):
        total = money_sum([Money(Decimal("0.10")), Money(Decimal("0.20"))])

        assert total.to_primitive() == "0.30"
        assert money_sum([]) == Money.zero()


class TestRentalPeriod:
    def test_days_are_inclusive(self):
        assert RentalPeriod(date(2024, 3, 9), date(2024, 3, 10)).days == 2
        assert RentalPeriod(date(2024, 3, 9), date(2024, 3, 9)).days == 1

    def test_end_before_start_is_rejected(self):
        with pytest.raises(ValidationError):
            RentalPeriod(date(2024, 3, 10), date(2024, 3, 9))

    def test_extended_to(self):
        period = RentalPeriod(date(2024, 3, 9), date(2024, 3, 10)).extended_to(date(2024, 3, 15))

        assert period.start_date == date(2024, 3, 9)
        assert period.days == 7
        assert period.contains(date(2024, 3, 15))
        assert not period.contains(date(2024, 3, 16))

"""Return fee calculation."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from apps.bookings.domain.fees import (
    DEFAULT_FEE_SETTINGS,
    ExtensionFeePolicy,
    FeeCalculator,
    FeeSettings,
    LateFeePolicy,
    whole_hours_between,
)
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Money

IST = timezone(timedelta(hours=5, minutes=30))
D = date(2024, 3, 10)
DROPOFF = time(10, 0)


def returned_at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=IST)


def compute(actual: datetime, settings: FeeSettings = DEFAULT_FEE_SETTINGS):
    return FeeCalculator.compute(D, DROPOFF, actual, settings)


def test_on_time_return_has_no_fees():
    fees = compute(returned_at(D, 11, 30))

    assert fees.late_fee == Money.zero()
    assert fees.extension_fee == Money.zero()
    assert fees.hours_late == 1


def test_late_beyond_grace_charges_late_fee_only():
    fees = compute(returned_at(D, 13, 30))

    assert fees.late_fee == Money(Decimal("1000"))
    assert fees.extension_fee == Money.zero()
    assert fees.hours_late == 3


def test_return_next_day_charges_extension_fee():
    fees = compute(returned_at(D + timedelta(days=1), 9, 0))

    assert fees.extension_fee == Money(Decimal("1000"))
    assert fees.total == Money(Decimal("2000"))


def test_grace_period_boundary_is_strict():
    assert compute(returned_at(D, 12, 0)).late_fee.is_zero
    assert compute(returned_at(D, 12, 59)).late_fee.is_zero
    assert compute(returned_at(D, 13, 0)).late_fee == Money(Decimal("1000"))


def test_same_day_overrun_past_threshold_charges_extension_fee():
    fees = compute(returned_at(D, 17, 30))

    assert fees.extension_fee == Money(Decimal("1000"))
    assert fees.late_fee == Money(Decimal("1000"))


def test_threshold_boundary_is_strict():
    assert compute(returned_at(D, 16, 59)).extension_fee.is_zero


def test_early_return_has_no_fees():
    fees = compute(returned_at(D - timedelta(days=1), 18, 0))

    assert fees.total.is_zero
    assert fees.hours_late == 0


def test_just_before_midnight_is_still_same_day():
    settings = FeeSettings(
        late_fee=DEFAULT_FEE_SETTINGS.late_fee,
        extension_fee=ExtensionFeePolicy(amount=Money(Decimal("1000")), threshold_hours=48),
    )

    assert compute(returned_at(D, 23, 59), settings).extension_fee.is_zero
    assert compute(returned_at(D + timedelta(days=1), 0, 0), settings).extension_fee == Money(Decimal("1000"))


def test_configured_amounts_are_used():
    settings = FeeSettings(
        late_fee=LateFeePolicy(amount=Money(Decimal("250")), grace_period_hours=0),
        extension_fee=ExtensionFeePolicy(amount=Money(Decimal("0")), threshold_hours=1),
    )

    fees = compute(returned_at(D + timedelta(days=1), 9, 0), settings)

    assert fees.late_fee == Money(Decimal("250"))
    assert fees.extension_fee.is_zero


def test_expected_return_uses_time_zone_of_actual_return():
    utc_return = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)  # 13:30 IST

    assert compute(utc_return.astimezone(IST)).late_fee == Money(Decimal("1000"))


def test_whole_hours_truncate_toward_zero():
    base = returned_at(D, 10, 0)

    assert whole_hours_between(base + timedelta(minutes=119), base) == 1
    assert whole_hours_between(base - timedelta(minutes=90), base) == -1


def test_negative_policy_hours_are_rejected():
    with pytest.raises(ValidationError):
        LateFeePolicy(amount=Money(Decimal("100")), grace_period_hours=-1)

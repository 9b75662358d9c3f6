"""
Return Fee Calculation

Pure functions that turn the scheduled and the actual return of a vehicle
into a late fee and an extension fee. Nothing here touches the database;
fee parameters arrive as an immutable ``FeeSettings`` value.

Rules:
- Late fee: charged once the return is more than ``grace_period_hours``
  whole hours past the expected return instant (strictly greater).
- Extension fee: charged when the vehicle comes back on a later calendar
  day than scheduled, or when the overrun exceeds ``threshold_hours``.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Money

ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class LateFeePolicy(ValueObject):
    amount: Money
    grace_period_hours: int

    def __post_init__(self):
        if self.grace_period_hours < 0:
            raise ValidationError("Grace period cannot be negative", field='grace_period_hours')


@dataclass(frozen=True)
class ExtensionFeePolicy(ValueObject):
    amount: Money
    threshold_hours: int

    def __post_init__(self):
        if self.threshold_hours < 0:
            raise ValidationError("Threshold cannot be negative", field='threshold_hours')


@dataclass(frozen=True)
class FeeSettings(ValueObject):
    late_fee: LateFeePolicy
    extension_fee: ExtensionFeePolicy

    @classmethod
    def defaults(cls) -> 'FeeSettings':
        return DEFAULT_FEE_SETTINGS

    def to_primitive(self) -> dict:
        return {
            'late_fee': {
                'amount': str(self.late_fee.amount.amount),
                'grace_period_hours': self.late_fee.grace_period_hours,
            },
            'extension_fee': {
                'amount': str(self.extension_fee.amount.amount),
                'threshold_hours': self.extension_fee.threshold_hours,
            },
        }


DEFAULT_FEE_SETTINGS = FeeSettings(
    late_fee=LateFeePolicy(amount=Money(Decimal('1000')), grace_period_hours=2),
    extension_fee=ExtensionFeePolicy(amount=Money(Decimal('1000')), threshold_hours=6),
)


@dataclass(frozen=True)
class ReturnFees(ValueObject):
    late_fee: Money
    extension_fee: Money
    hours_late: int = 0

    @property
    def total(self) -> Money:
        return self.late_fee + self.extension_fee


def whole_hours_between(later: datetime, earlier: datetime) -> int:
    """Whole hours from ``earlier`` to ``later``, truncated toward zero."""
    return int((later - earlier) / ONE_HOUR)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


class FeeCalculator:
    """Computes return fees; total over well-formed input, never raises."""

    @staticmethod
    def expected_return(scheduled_end: date, scheduled_dropoff_time: time, tzinfo=None) -> datetime:
        return datetime.combine(scheduled_end, scheduled_dropoff_time, tzinfo=tzinfo)

    @classmethod
    def compute(
        cls,
        scheduled_end: date,
        scheduled_dropoff_time: time,
        actual_return_time: datetime,
        settings: FeeSettings,
    ) -> ReturnFees:
        """
        Compute late and extension fees for a return

        The expected return instant is interpreted in the time zone of
        ``actual_return_time``; callers pass local time.
        """
        expected = cls.expected_return(
            scheduled_end, scheduled_dropoff_time, tzinfo=actual_return_time.tzinfo
        )
        currency = settings.late_fee.amount.currency

        hours_late = whole_hours_between(actual_return_time, expected)
        late_fee = Money.zero(currency)
        if hours_late > settings.late_fee.grace_period_hours:
            late_fee = settings.late_fee.amount

        returned_on_later_day = actual_return_time > end_of_day(expected)
        # Overrun is measured from the expected return instant.
        hours_extended = whole_hours_between(actual_return_time, expected)
        over_threshold = hours_extended > settings.extension_fee.threshold_hours

        extension_fee = Money.zero(settings.extension_fee.amount.currency)
        if returned_on_later_day or over_threshold:
            extension_fee = settings.extension_fee.amount

        return ReturnFees(
            late_fee=late_fee,
            extension_fee=extension_fee,
            hours_late=max(hours_late, 0),
        )

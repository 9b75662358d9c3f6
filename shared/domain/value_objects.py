"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents non-negative monetary amounts with currency
- RentalPeriod: Represents the scheduled pickup to drop-off date span
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError

DEFAULT_CURRENCY = 'INR'
SUPPORTED_CURRENCIES = ('INR', 'USD', 'EUR')
CENTS = Decimal('0.01')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable and supports arithmetic operations.
    Amounts are quantized to two decimal places.
    """
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        amount = self.amount
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        object.__setattr__(self, 'amount', amount.quantize(CENTS, rounding=ROUND_HALF_UP))

        if self.amount < 0:
            raise ValidationError("Amount cannot be negative", field='amount')
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValidationError(f"Unsupported currency: {self.currency}", field='currency')

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> 'Money':
        return cls(Decimal('0'), currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def _check_currency(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot combine different currencies: {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def deduct(self, other: 'Money') -> 'Money':
        """Subtract, flooring at zero"""
        self._check_currency(other)
        return Money(max(self.amount - other.amount, Decimal('0')), self.currency)

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def to_primitive(self) -> str:
        return str(self.amount)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def money_sum(values, currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total


@dataclass(frozen=True)
class RentalPeriod(ValueObject):
    """
    Rental period value object

    Both ends are inclusive: a vehicle picked up and dropped off on the
    same day is rented for one day.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValidationError(
                f"Start date ({self.start_date}) must not be after end date ({self.end_date})",
                field='scheduled_end',
            )

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def extended_to(self, end_date: date) -> 'RentalPeriod':
        return RentalPeriod(self.start_date, end_date)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def __len__(self) -> int:
        return self.days

    def __str__(self):
        return f"{self.start_date.strftime('%d.%m.%Y')} - {self.end_date.strftime('%d.%m.%Y')}"

    def __repr__(self):
        return f"RentalPeriod({self.start_date}, {self.end_date})"

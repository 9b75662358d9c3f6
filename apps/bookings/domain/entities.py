"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Main aggregate representing a vehicle rental
- BookingStatus: FSM states for booking lifecycle
- CompletionFacts: What staff observed when the vehicle came back
- BookingExtension: Record of a schedule extension
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject, utc_now
from shared.domain.exceptions import ConflictError, ValidationError
from shared.domain.value_objects import Money, RentalPeriod
from apps.bookings.domain.fees import FeeCalculator, ReturnFees
from apps.finances.domain.ledger import PaymentMode, PaymentStatus, derive_payment_status

MAX_EXTENSION_DAYS = 30


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - RESERVED -> CONFIRMED (reservation confirmed)
    - CONFIRMED -> IN_USE (vehicle handed over)
    - IN_USE -> COMPLETED (vehicle returned, fees settled)
    - RESERVED / CONFIRMED / IN_USE -> CANCELLED
    COMPLETED and CANCELLED are terminal.
    """
    RESERVED = 'reserved'
    CONFIRMED = 'confirmed'
    IN_USE = 'in_use'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

    def can_transition_to(self, target: 'BookingStatus') -> bool:
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS = {
    BookingStatus.RESERVED: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_USE, BookingStatus.CANCELLED},
    BookingStatus.IN_USE: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


def _non_negative(value, field_name: str) -> Decimal:
    if value is None:
        return Decimal('0')
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return amount


@dataclass(frozen=True)
class CompletionFacts(ValueObject):
    """Observations recorded when a vehicle is returned"""
    actual_return_time: datetime
    damage_charges: Decimal = Decimal('0')
    payment_amount: Decimal = Decimal('0')
    payment_method: PaymentMode = PaymentMode.CASH
    notes: str = ''
    damage_description: str = ''
    vehicle_remarks: str = ''
    odometer_reading: int | None = None
    fuel_level: str = ''
    inspection_notes: str = ''

    def __post_init__(self):
        if not isinstance(self.actual_return_time, datetime):
            raise ValidationError("Actual return time is required", field='actual_return_time')
        object.__setattr__(self, 'damage_charges', _non_negative(self.damage_charges, 'damage_charges'))
        object.__setattr__(self, 'payment_amount', _non_negative(self.payment_amount, 'payment_amount'))
        object.__setattr__(self, 'payment_method', PaymentMode.parse(self.payment_method))
        if self.odometer_reading is not None and self.odometer_reading < 0:
            raise ValidationError("Odometer reading cannot be negative", field='odometer_reading')


@dataclass(frozen=True)
class BookingExtension(ValueObject):
    """A schedule extension, appended to the booking's extension history"""
    booking_id: UUID
    previous_end_date: date
    previous_dropoff_time: time
    new_end_date: date
    new_dropoff_time: time
    additional_amount: Money
    reason: str
    created_by: UUID | None
    created_at: datetime


@dataclass(eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Represents a customer's rental of a vehicle for a scheduled period.

    Key invariants:
    - total_amount = booking_amount + security_deposit + late_fee
      + extension_fee + damage_charges (computed, never stored stale)
    - payment_status is derived from paid_amount vs total_amount
    - status never moves backward; COMPLETED and CANCELLED are terminal
    """

    booking_code: str
    period: RentalPeriod
    pickup_time: time
    dropoff_time: time
    booking_amount: Money

    security_deposit: Money = field(default_factory=Money.zero)
    late_fee: Money = field(default_factory=Money.zero)
    extension_fee: Money = field(default_factory=Money.zero)
    damage_charges: Money = field(default_factory=Money.zero)
    refund_amount: Money = field(default_factory=Money.zero)
    paid_amount: Money = field(default_factory=Money.zero)
    payment_mode: PaymentMode = PaymentMode.CASH

    # Customer and vehicle snapshot
    customer_name: str = ''
    customer_contact: str = ''
    customer_email: str = ''
    vehicle_model: str = ''
    vehicle_registration: str = ''

    status: BookingStatus = BookingStatus.RESERVED

    # Return inspection
    actual_return_time: datetime | None = None
    damage_description: str = ''
    vehicle_remarks: str = ''
    odometer_reading: int | None = None
    fuel_level: str = ''
    inspection_notes: str = ''
    notes: str = ''
    cancellation_reason: str = ''

    # Actors and timestamps
    created_by: UUID | None = None
    completed_by: UUID | None = None
    cancelled_by: UUID | None = None
    confirmed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def total_amount(self) -> Money:
        return (
            self.booking_amount
            + self.security_deposit
            + self.late_fee
            + self.extension_fee
            + self.damage_charges
        )

    @property
    def additional_charges(self) -> Money:
        return self.late_fee + self.extension_fee + self.damage_charges

    @property
    def payment_status(self) -> PaymentStatus:
        return derive_payment_status(self.paid_amount.amount, self.total_amount.amount)

    @property
    def balance_due(self) -> Money:
        return self.total_amount.deduct(self.paid_amount)

    @property
    def expected_return(self) -> datetime:
        return FeeCalculator.expected_return(self.period.end_date, self.dropoff_time)

    @property
    def duration_days(self) -> int:
        return self.period.days

    def _transition(self, target: BookingStatus, action: str):
        if not self.status.can_transition_to(target):
            raise ConflictError(
                f"Cannot {action} booking {self.booking_code} from status {self.status.value}"
            )
        self.status = target
        self.updated_at = utc_now()

    def confirm(self, actor_id: UUID | None):
        """
        Confirm reservation (RESERVED -> CONFIRMED)

        Events: BookingConfirmed
        """
        from apps.bookings.domain.events import BookingConfirmed

        self._transition(BookingStatus.CONFIRMED, 'confirm')
        self.confirmed_at = self.updated_at

        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            confirmed_by=actor_id,
        ))

    def start(self, actor_id: UUID | None):
        """
        Hand over the vehicle (CONFIRMED -> IN_USE)

        Events: BookingStarted
        """
        from apps.bookings.domain.events import BookingStarted

        self._transition(BookingStatus.IN_USE, 'start')
        self.started_at = self.updated_at

        self.add_event(BookingStarted(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            started_by=actor_id,
        ))

    def ensure_can_complete(self):
        if self.status != BookingStatus.IN_USE:
            raise ConflictError(
                f"Cannot complete booking {self.booking_code} from status {self.status.value}. "
                f"Booking must be in_use."
            )

    def complete(
        self,
        actor_id: UUID | None,
        facts: CompletionFacts,
        fees: ReturnFees,
        paid_amount: Money,
    ):
        """
        Complete booking (IN_USE -> COMPLETED)

        ``paid_amount`` is the ledger aggregate after the completion
        payment (if any) has been recorded.
        Events: BookingCompleted
        """
        self.ensure_can_complete()

        from apps.bookings.domain.events import BookingCompleted

        currency = self.booking_amount.currency
        self.damage_charges = Money(facts.damage_charges, currency)
        self.late_fee = fees.late_fee
        self.extension_fee = fees.extension_fee
        self.refund_amount = self.security_deposit.deduct(self.damage_charges)
        self.paid_amount = paid_amount
        if not facts.payment_amount.is_zero():
            self.payment_mode = facts.payment_method

        self.actual_return_time = facts.actual_return_time
        self.damage_description = facts.damage_description
        self.vehicle_remarks = facts.vehicle_remarks
        self.odometer_reading = facts.odometer_reading
        self.fuel_level = facts.fuel_level
        self.inspection_notes = facts.inspection_notes
        self.notes = facts.notes

        self._transition(BookingStatus.COMPLETED, 'complete')
        self.completed_at = self.updated_at
        self.completed_by = actor_id

        self.add_event(BookingCompleted(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            customer_ref=self.customer_contact,
            customer_name=self.customer_name,
            vehicle_registration=self.vehicle_registration,
            total_fare=self.total_amount,
            booking_amount=self.booking_amount,
            additional_charges=self.additional_charges,
            refund_amount=self.refund_amount,
            paid_amount=self.paid_amount,
            payment_status=self.payment_status.value,
            duration_days=self.duration_days,
            payment_method=facts.payment_method.value,
            actual_return_time=facts.actual_return_time,
            completed_by=actor_id,
        ))

    def cancel(self, actor_id: UUID | None, reason: str = ''):
        """
        Cancel booking

        Allowed from any non-terminal status. Fee fields are untouched.
        Events: BookingCancelled
        """
        from apps.bookings.domain.events import BookingCancelled

        old_status = self.status
        self._transition(BookingStatus.CANCELLED, 'cancel')
        self.cancelled_at = self.updated_at
        self.cancelled_by = actor_id
        self.cancellation_reason = reason

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            customer_ref=self.customer_contact,
            customer_name=self.customer_name,
            reason=reason,
            old_status=old_status.value,
            cancelled_by=actor_id,
        ))

    def extend(
        self,
        actor_id: UUID | None,
        new_end_date: date,
        new_dropoff_time: time,
        additional_amount: Money,
        reason: str = '',
    ) -> BookingExtension:
        """
        Move the scheduled return later

        The additional amount is added to the booking amount.
        Events: BookingExtended
        """
        if self.status.is_terminal:
            raise ConflictError(
                f"Cannot extend booking {self.booking_code} with status {self.status.value}"
            )

        new_return = FeeCalculator.expected_return(new_end_date, new_dropoff_time)
        if new_return <= self.expected_return:
            raise ValidationError(
                "New return must be after the current scheduled return",
                field='new_end_date',
            )
        if new_end_date > self.period.end_date + timedelta(days=MAX_EXTENSION_DAYS):
            raise ValidationError(
                f"Maximum extension is {MAX_EXTENSION_DAYS} days from the current end date",
                field='new_end_date',
            )

        from apps.bookings.domain.events import BookingExtended

        extension = BookingExtension(
            booking_id=self.id,
            previous_end_date=self.period.end_date,
            previous_dropoff_time=self.dropoff_time,
            new_end_date=new_end_date,
            new_dropoff_time=new_dropoff_time,
            additional_amount=additional_amount,
            reason=reason,
            created_by=actor_id,
            created_at=utc_now(),
        )

        self.period = self.period.extended_to(new_end_date)
        self.dropoff_time = new_dropoff_time
        self.booking_amount = self.booking_amount + additional_amount
        self.updated_at = extension.created_at

        self.add_event(BookingExtended(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            customer_ref=self.customer_contact,
            customer_name=self.customer_name,
            previous_end_date=extension.previous_end_date,
            new_end_date=new_end_date,
            new_dropoff_time=new_dropoff_time,
            additional_amount=additional_amount,
            booking_amount=self.booking_amount,
            extended_by=actor_id,
        ))
        return extension

    def apply_ledger(self, paid_amount: Money, payment_mode: PaymentMode | None = None):
        """Refresh the paid amount from the ledger aggregate"""
        self.paid_amount = paid_amount
        if payment_mode is not None:
            self.payment_mode = payment_mode
        self.updated_at = utc_now()

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def __str__(self):
        return f"Booking {self.booking_code} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, booking_code={self.booking_code}, "
            f"status={self.status.value}, period={self.period!r})"
        )

"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits and handed to
the notifier, which renders and delivers customer messages.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """Event: reservation confirmed (RESERVED -> CONFIRMED)"""
    booking_id: UUID
    booking_code: str
    confirmed_by: UUID | None


@dataclass(kw_only=True)
class BookingStarted(DomainEvent):
    """Event: vehicle handed over to the customer (CONFIRMED -> IN_USE)"""
    booking_id: UUID
    booking_code: str
    started_by: UUID | None


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """
    Event: vehicle returned and booking settled (IN_USE -> COMPLETED)

    Carries the financial summary the customer message is rendered from.

    Triggers:
    - WhatsApp completion message to the customer
    """
    booking_id: UUID
    booking_code: str
    customer_ref: str
    customer_name: str
    vehicle_registration: str
    total_fare: Money
    booking_amount: Money
    additional_charges: Money
    refund_amount: Money
    paid_amount: Money
    payment_status: str
    duration_days: int
    payment_method: str
    actual_return_time: datetime
    completed_by: UUID | None


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: booking was cancelled

    Triggers:
    - WhatsApp cancellation notice to the customer
    """
    booking_id: UUID
    booking_code: str
    customer_ref: str
    customer_name: str
    reason: str
    old_status: str
    cancelled_by: UUID | None


@dataclass(kw_only=True)
class BookingExtended(DomainEvent):
    """
    Event: scheduled return moved later

    Triggers:
    - WhatsApp notice with the new return date and amount
    """
    booking_id: UUID
    booking_code: str
    customer_ref: str
    customer_name: str
    previous_end_date: date
    new_end_date: date
    new_dropoff_time: time
    additional_amount: Money
    booking_amount: Money
    extended_by: UUID | None

"""Service entry points for booking lifecycle workflows.

Thin wrappers that wire the command handlers to the Django repositories,
the authorization gate and the fee settings provider. Views, tasks and
management commands call these instead of the handlers directly.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from apps.finances.fee_settings import FeeSettingsProvider
from apps.finances.repositories import DjangoPaymentRepository
from apps.users.repositories import default_gate

from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CompleteBookingCommand,
    CompleteBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    ExtendBookingCommand,
    ExtendBookingHandler,
    StartBookingCommand,
    StartBookingHandler,
)
from .domain.entities import Booking, CompletionFacts
from .repositories import DjangoBookingRepository


def complete_booking(booking_id: UUID, actor_id: UUID | None, facts: CompletionFacts) -> Booking:
    handler = CompleteBookingHandler(
        DjangoBookingRepository(),
        DjangoPaymentRepository(),
        default_gate(),
        FeeSettingsProvider(),
    )
    return handler.handle(CompleteBookingCommand(booking_id, actor_id, facts))


def cancel_booking(booking_id: UUID, actor_id: UUID | None, reason: str = "") -> Booking:
    handler = CancelBookingHandler(DjangoBookingRepository(), default_gate())
    return handler.handle(CancelBookingCommand(booking_id, actor_id, reason))


def confirm_booking(booking_id: UUID, actor_id: UUID | None) -> Booking:
    handler = ConfirmBookingHandler(DjangoBookingRepository(), default_gate())
    return handler.handle(ConfirmBookingCommand(booking_id, actor_id))


def start_booking(booking_id: UUID, actor_id: UUID | None) -> Booking:
    handler = StartBookingHandler(DjangoBookingRepository(), default_gate())
    return handler.handle(StartBookingCommand(booking_id, actor_id))


def extend_booking(
    booking_id: UUID,
    actor_id: UUID | None,
    new_end_date: date,
    new_dropoff_time: time,
    additional_amount: Decimal = Decimal("0"),
    reason: str = "",
) -> Booking:
    handler = ExtendBookingHandler(DjangoBookingRepository(), default_gate())
    return handler.handle(
        ExtendBookingCommand(
            booking_id=booking_id,
            actor_id=actor_id,
            new_end_date=new_end_date,
            new_dropoff_time=new_dropoff_time,
            additional_amount=additional_amount,
            reason=reason,
        )
    )

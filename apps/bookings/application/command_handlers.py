"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- ConfirmBookingCommand: Confirm a reservation
- StartBookingCommand: Hand the vehicle over to the customer
- CompleteBookingCommand: Take the vehicle back, charge fees, settle
- CancelBookingCommand: Cancel a booking
- ExtendBookingCommand: Move the scheduled return later

Every handler loads the booking, checks the status precondition, asks the
authorization gate, mutates the aggregate and saves it with an optimistic
precondition on the status it was loaded with.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable
from uuid import UUID
import logging

from django.utils import timezone

from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Money
from apps.bookings.domain.entities import Booking, CompletionFacts
from apps.bookings.domain.fees import FeeCalculator
from apps.finances.application.command_handlers import adopt_legacy_payment
from apps.finances.domain.ledger import EntrySource
from apps.users.domain.authorization import Action, AuthorizationGate

logger = logging.getLogger(__name__)


def to_local(moment: datetime) -> datetime:
    """Aware datetime in the configured business time zone"""
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return timezone.localtime(moment)


# ===== Commands =====

@dataclass
class ConfirmBookingCommand:
    booking_id: UUID
    actor_id: UUID | None


@dataclass
class StartBookingCommand:
    booking_id: UUID
    actor_id: UUID | None


@dataclass
class CompleteBookingCommand:
    """
    Command to complete a booking when the vehicle is returned

    ``facts`` carries what staff recorded at the return desk.
    """
    booking_id: UUID
    actor_id: UUID | None
    facts: CompletionFacts


@dataclass
class CancelBookingCommand:
    booking_id: UUID
    actor_id: UUID | None
    reason: str = ''


@dataclass
class ExtendBookingCommand:
    booking_id: UUID
    actor_id: UUID | None
    new_end_date: date
    new_dropoff_time: time
    additional_amount: Decimal = Decimal('0')
    reason: str = ''


# ===== Command Handlers =====

class _BookingHandler:

    def __init__(
        self,
        booking_repo,
        gate: AuthorizationGate,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.booking_repo = booking_repo
        self.gate = gate
        self.uow_factory = uow_factory


class ConfirmBookingHandler(_BookingHandler):
    """Handler for confirming a reservation"""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        logger.info(f"Confirming booking {command.booking_id}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get(command.booking_id)
            self.gate.require(command.actor_id, Action.CONFIRM_BOOKING)

            expected_status = booking.status
            booking.confirm(command.actor_id)

            self.booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)
            # Event: BookingConfirmed

        logger.info(f"Booking {booking.booking_code} confirmed")
        return booking


class StartBookingHandler(_BookingHandler):
    """Handler for handing the vehicle over"""

    def handle(self, command: StartBookingCommand) -> Booking:
        logger.info(f"Starting booking {command.booking_id}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get(command.booking_id)
            self.gate.require(command.actor_id, Action.START_BOOKING)

            expected_status = booking.status
            booking.start(command.actor_id)

            self.booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)
            # Event: BookingStarted

        logger.info(f"Booking {booking.booking_code} started")
        return booking


class CompleteBookingHandler(_BookingHandler):
    """
    Handler for completing a booking

    Steps, all inside one transaction:
    1. Load the booking with a row lock
    2. Status precondition (in_use), then authorization
    3. Compute late and extension fees from the current fee settings
    4. Backfill a paid amount that predates the ledger, then record the
       return payment, if any
    5. Complete the aggregate with the re-aggregated paid amount
    6. Save with the optimistic precondition; a conflict rolls back the
       ledger entry of step 4 as well
    BookingCompleted is published after commit.
    """

    def __init__(
        self,
        booking_repo,
        payment_repo,
        gate: AuthorizationGate,
        fee_settings,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        super().__init__(booking_repo, gate, uow_factory)
        self.payment_repo = payment_repo
        self.fee_settings = fee_settings

    def handle(self, command: CompleteBookingCommand) -> Booking:
        logger.info(f"Completing booking {command.booking_id}")

        facts = replace(command.facts, actual_return_time=to_local(command.facts.actual_return_time))

        with self.uow_factory() as uow:
            booking = self.booking_repo.get(command.booking_id, lock=True)
            booking.ensure_can_complete()
            self.gate.require(command.actor_id, Action.COMPLETE_BOOKING)

            expected_status = booking.status
            fees = FeeCalculator.compute(
                booking.period.end_date,
                booking.dropoff_time,
                facts.actual_return_time,
                self.fee_settings.get(),
            )
            logger.info(
                f"Return fees for {booking.booking_code}: late={fees.late_fee}, "
                f"extension={fees.extension_fee}, hours_late={fees.hours_late}"
            )

            ledger = self.payment_repo.get_ledger(booking.id)
            adopt_legacy_payment(
                self.payment_repo, ledger, booking.paid_amount, booking.payment_mode,
                booking.created_by, booking.created_at,
            )
            if facts.payment_amount > 0:
                entry = ledger.record(
                    Money(facts.payment_amount, booking.booking_amount.currency),
                    facts.payment_method,
                    command.actor_id,
                    source=EntrySource.COMPLETION,
                    notes=facts.notes,
                )
                self.payment_repo.add(entry)

            booking.complete(command.actor_id, facts, fees, ledger.paid_amount)

            self.booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)
            # Event: BookingCompleted

        logger.info(
            f"Booking {booking.booking_code} completed: total={booking.total_amount}, "
            f"paid={booking.paid_amount}, payment_status={booking.payment_status.value}"
        )
        return booking


class CancelBookingHandler(_BookingHandler):
    """Handler for cancelling a booking"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get(command.booking_id)
            self.gate.require(command.actor_id, Action.CANCEL_BOOKING)

            expected_status = booking.status
            booking.cancel(command.actor_id, command.reason)

            self.booking_repo.save(booking, expected_status=expected_status)
            uow.collect_events(booking)
            # Event: BookingCancelled

        logger.info(f"Booking {booking.booking_code} cancelled")
        return booking


class ExtendBookingHandler(_BookingHandler):
    """Handler for extending the scheduled return"""

    def handle(self, command: ExtendBookingCommand) -> Booking:
        logger.info(
            f"Extending booking {command.booking_id} to "
            f"{command.new_end_date} {command.new_dropoff_time}"
        )

        try:
            additional_amount = Money(command.additional_amount)
        except ValidationError as e:
            raise ValidationError(e.message, field='additional_amount')

        with self.uow_factory() as uow:
            booking = self.booking_repo.get(command.booking_id, lock=True)
            self.gate.require(command.actor_id, Action.EXTEND_BOOKING)

            expected_status = booking.status
            extension = booking.extend(
                command.actor_id,
                command.new_end_date,
                command.new_dropoff_time,
                additional_amount,
                command.reason,
            )

            self.booking_repo.save(booking, expected_status=expected_status)
            self.booking_repo.add_extension(extension)
            uow.collect_events(booking)
            # Event: BookingExtended

        logger.info(
            f"Booking {booking.booking_code} extended to {booking.period.end_date}, "
            f"booking amount {booking.booking_amount}"
        )
        return booking

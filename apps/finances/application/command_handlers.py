"""
Finance Command Handlers

Commands:
- RecordPaymentCommand: Append a payment to a booking's ledger
- SettlePaymentCommand: Mark a pending payment as received
- ReconcilePaymentsCommand: Backfill ledger entries for bookings whose
  paid amount predates the ledger
- UpdateFeeSettingsCommand: Change late / extension fee parameters

The booking's ``paid_amount`` is always re-aggregated from the ledger
under the booking row lock and saved in the same transaction as the
ledger write.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable
from uuid import UUID
import logging

from django.db import DatabaseError

from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.exceptions import ConflictError, ValidationError
from shared.domain.value_objects import Money
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.fees import ExtensionFeePolicy, FeeSettings, LateFeePolicy
from apps.finances.domain.ledger import EntrySource, PaymentEntry, PaymentLedger, PaymentMode
from apps.users.domain.authorization import Action, AuthorizationGate

logger = logging.getLogger(__name__)


def _positive_amount(value) -> Money:
    try:
        amount = Money(Decimal(str(value)))
    except (InvalidOperation, ValidationError):
        raise ValidationError("Amount must be a positive number", field='amount')
    if amount.is_zero:
        raise ValidationError("Amount must be greater than zero", field='amount')
    return amount


def adopt_legacy_payment(payment_repo, ledger: PaymentLedger, paid_amount: Money, mode,
                         actor_id: UUID | None, created_at) -> PaymentEntry | None:
    """
    Persist a backfill entry for a paid amount that predates the ledger

    Must run under the booking row lock, before anything else is
    appended to the ledger or the paid amount is re-aggregated.
    """
    entry = ledger.backfill(paid_amount, PaymentMode.parse(mode), actor_id, created_at)
    if entry is None:
        return None

    payment_repo.add(entry)
    logger.info(
        f"Backfilled payment entry {entry.id} ({entry.amount}) for booking {ledger.booking_id}"
    )
    return entry


# ===== Commands =====

@dataclass
class RecordPaymentCommand:
    booking_id: UUID
    amount: Decimal
    mode: str
    actor_id: UUID | None
    notes: str = ''


@dataclass
class SettlePaymentCommand:
    entry_id: UUID
    actor_id: UUID | None


@dataclass
class ReconcilePaymentsCommand:
    pass


@dataclass
class UpdateFeeSettingsCommand:
    actor_id: UUID | None
    late_fee_amount: Decimal
    grace_period_hours: int
    extension_fee_amount: Decimal
    threshold_hours: int


# ===== Command Handlers =====

class RecordPaymentHandler:
    """
    Handler for recording a payment

    Cash, UPI and card payments count towards the paid amount at once;
    bank transfers and other modes stay pending until settled.
    """

    def __init__(
        self,
        booking_repo,
        payment_repo,
        gate: AuthorizationGate,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.booking_repo = booking_repo
        self.payment_repo = payment_repo
        self.gate = gate
        self.uow_factory = uow_factory

    def handle(self, command: RecordPaymentCommand) -> PaymentEntry:
        amount = _positive_amount(command.amount)
        mode = PaymentMode.parse(command.mode)

        with self.uow_factory():
            booking = self.booking_repo.get(command.booking_id, lock=True)
            self.gate.require(command.actor_id, Action.RECORD_PAYMENT)

            if booking.status == BookingStatus.CANCELLED:
                raise ConflictError(
                    f"Cannot record payment for cancelled booking {booking.booking_code}"
                )

            ledger = self.payment_repo.get_ledger(booking.id)
            adopt_legacy_payment(
                self.payment_repo, ledger, booking.paid_amount, booking.payment_mode,
                booking.created_by, booking.created_at,
            )
            entry = ledger.record(amount, mode, command.actor_id, notes=command.notes)
            self.payment_repo.add(entry)

            booking.apply_ledger(ledger.paid_amount, mode)
            self.booking_repo.save(booking, expected_status=booking.status)

        logger.info(
            f"Recorded {entry.status.value} payment {amount} ({mode.value}) "
            f"for booking {booking.booking_code}; paid {booking.paid_amount} "
            f"of {booking.total_amount}"
        )
        return entry


class SettlePaymentHandler:
    """Handler for settling a pending payment"""

    def __init__(
        self,
        booking_repo,
        payment_repo,
        gate: AuthorizationGate,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.booking_repo = booking_repo
        self.payment_repo = payment_repo
        self.gate = gate
        self.uow_factory = uow_factory

    def handle(self, command: SettlePaymentCommand) -> PaymentEntry:
        pending = self.payment_repo.get_entry_or_404(command.entry_id)

        with self.uow_factory():
            booking = self.booking_repo.get(pending.booking_id, lock=True)
            self.gate.require(command.actor_id, Action.SETTLE_PAYMENT)

            ledger = self.payment_repo.get_ledger(booking.id)
            entry = ledger.settle(pending.id)
            self.payment_repo.save_status(entry)

            booking.apply_ledger(ledger.paid_amount)
            self.booking_repo.save(booking, expected_status=booking.status)

        logger.info(
            f"Settled payment {entry.id} for booking {booking.booking_code}; "
            f"payment status {booking.payment_status.value}"
        )
        return entry


class ReconcilePaymentsHandler:
    """
    Handler for the ledger backfill

    For every booking with a positive paid amount and no ledger entries,
    synthesize one completed entry for the paid amount, dated at the
    booking's creation. Each booking is processed in its own transaction:
    the empty-ledger check is repeated under the booking row lock, so
    concurrent runs never insert twice. A failure on one booking is
    logged and the run moves on.
    """

    def __init__(
        self,
        payment_repo,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.payment_repo = payment_repo
        self.uow_factory = uow_factory

    def handle(self, command: ReconcilePaymentsCommand | None = None) -> dict:
        candidates = self.payment_repo.booking_ids_missing_entries()
        logger.info(f"Payment reconciliation: {len(candidates)} candidate booking(s)")

        created = 0
        failed = 0
        for booking_id in candidates:
            try:
                if self._backfill_one(booking_id):
                    created += 1
            except (DatabaseError, ValidationError) as e:
                failed += 1
                logger.error(f"Backfill failed for booking {booking_id}: {e}", exc_info=True)

        logger.info(f"Payment reconciliation finished: created={created}, failed={failed}")
        return {'created': created}

    def _backfill_one(self, booking_id: UUID) -> bool:
        with self.uow_factory():
            row = self.payment_repo.lock_booking_row(booking_id)
            if row is None or row['paid_amount'] <= 0:
                return False

            ledger = self.payment_repo.get_ledger(booking_id)
            entry = adopt_legacy_payment(
                self.payment_repo,
                ledger,
                Money(row['paid_amount']),
                row['payment_mode'],
                row['created_by_id'],
                row['created_at'],
            )
        return entry is not None


class UpdateFeeSettingsHandler:
    """Handler for changing fee parameters"""

    def __init__(
        self,
        settings_repo,
        gate: AuthorizationGate,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.settings_repo = settings_repo
        self.gate = gate
        self.uow_factory = uow_factory

    def handle(self, command: UpdateFeeSettingsCommand) -> FeeSettings:
        self.gate.require(command.actor_id, Action.UPDATE_FEE_SETTINGS)

        settings = FeeSettings(
            late_fee=LateFeePolicy(
                amount=Money(command.late_fee_amount),
                grace_period_hours=command.grace_period_hours,
            ),
            extension_fee=ExtensionFeePolicy(
                amount=Money(command.extension_fee_amount),
                threshold_hours=command.threshold_hours,
            ),
        )

        with self.uow_factory():
            self.settings_repo.save(settings, command.actor_id)

        logger.info(f"Fee settings updated by {command.actor_id}: {settings.to_primitive()}")
        return settings

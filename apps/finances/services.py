"""Service entry points for the payment ledger and fee settings."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from apps.bookings.domain.fees import FeeSettings
from apps.bookings.repositories import DjangoBookingRepository
from apps.users.repositories import default_gate

from .application.command_handlers import (
    ReconcilePaymentsCommand,
    ReconcilePaymentsHandler,
    RecordPaymentCommand,
    RecordPaymentHandler,
    SettlePaymentCommand,
    SettlePaymentHandler,
    UpdateFeeSettingsCommand,
    UpdateFeeSettingsHandler,
)
from .domain.ledger import PaymentEntry
from .fee_settings import DjangoFeeSettingsRepository, FeeSettingsProvider
from .repositories import DjangoPaymentRepository


def record_payment(
    booking_id: UUID,
    amount: Decimal,
    mode: str,
    actor_id: UUID | None,
    notes: str = "",
) -> PaymentEntry:
    handler = RecordPaymentHandler(DjangoBookingRepository(), DjangoPaymentRepository(), default_gate())
    return handler.handle(RecordPaymentCommand(booking_id, amount, mode, actor_id, notes))


def settle_payment(entry_id: UUID, actor_id: UUID | None) -> PaymentEntry:
    handler = SettlePaymentHandler(DjangoBookingRepository(), DjangoPaymentRepository(), default_gate())
    return handler.handle(SettlePaymentCommand(entry_id, actor_id))


def reconcile_payments() -> dict:
    """Backfill missing ledger entries; safe to run repeatedly."""
    return ReconcilePaymentsHandler(DjangoPaymentRepository()).handle(ReconcilePaymentsCommand())


def get_fee_settings() -> FeeSettings:
    return FeeSettingsProvider().get()


def update_fee_settings(
    actor_id: UUID | None,
    *,
    late_fee_amount: Decimal,
    grace_period_hours: int,
    extension_fee_amount: Decimal,
    threshold_hours: int,
) -> FeeSettings:
    handler = UpdateFeeSettingsHandler(DjangoFeeSettingsRepository(), default_gate())
    return handler.handle(
        UpdateFeeSettingsCommand(
            actor_id=actor_id,
            late_fee_amount=late_fee_amount,
            grace_period_hours=grace_period_hours,
            extension_fee_amount=extension_fee_amount,
            threshold_hours=threshold_hours,
        )
    )

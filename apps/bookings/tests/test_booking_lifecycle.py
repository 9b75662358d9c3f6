"""Booking lifecycle use cases against the database."""

from __future__ import annotations

from copy import deepcopy
from datetime import date, datetime, time
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from apps.bookings import services
from apps.bookings.application.command_handlers import CompleteBookingCommand, CompleteBookingHandler
from apps.bookings.domain.entities import BookingStatus, CompletionFacts
from apps.bookings.domain.events import BookingCompleted
from apps.bookings.models import Booking, BookingExtension
from apps.bookings.repositories import DjangoBookingRepository
from apps.bookings.domain.fees import ReturnFees
from apps.finances import services as finance_services
from apps.finances.fee_settings import FeeSettingsProvider
from apps.finances.models import AppSetting, PaymentEntry
from apps.finances.repositories import DjangoPaymentRepository
from apps.users.repositories import default_gate
from shared.domain.exceptions import AuthorizationError, ConflictError, NotFoundError
from shared.domain.value_objects import Money

IST = ZoneInfo("Asia/Kolkata")

pytestmark = pytest.mark.django_db


def return_facts(hour=13, minute=30, day=10, **overrides) -> CompletionFacts:
    values = dict(
        actual_return_time=datetime(2024, 3, day, hour, minute, tzinfo=IST),
        damage_charges=Decimal("200"),
        payment_amount=Decimal("0"),
        payment_method="cash",
    )
    values.update(overrides)
    return CompletionFacts(**values)


class TestCompleteBooking:
    def test_completion_charges_fees_and_keeps_total_invariant(self, make_booking, staff_admin):
        row = make_booking()

        services.complete_booking(row.id, staff_admin.pk, return_facts())

        row.refresh_from_db()
        assert row.status == Booking.Status.COMPLETED
        assert row.late_fee == Decimal("1000.00")
        assert row.extension_fee == Decimal("0.00")
        assert row.damage_charges == Decimal("200.00")
        assert row.refund_amount == Decimal("300.00")
        assert row.total_amount == (
            row.booking_amount + row.security_deposit + row.late_fee + row.extension_fee + row.damage_charges
        )
        assert row.total_amount == Decimal("2700.00")
        assert row.payment_status == Booking.PaymentStatus.PENDING
        assert row.completed_by_id == staff_admin.pk
        assert row.completed_at is not None

    def test_naive_return_time_is_read_as_local_time(self, make_booking, staff_admin):
        row = make_booking()

        services.complete_booking(
            row.id, staff_admin.pk, return_facts(actual_return_time=datetime(2024, 3, 10, 11, 30))
        )

        row.refresh_from_db()
        assert row.late_fee == Decimal("0.00")

    def test_cash_payment_at_return_is_settled(self, make_booking, staff_admin):
        row = make_booking()

        services.complete_booking(
            row.id,
            staff_admin.pk,
            return_facts(payment_amount=Decimal("2700"), payment_method="cash"),
        )

        row.refresh_from_db()
        entry = PaymentEntry.objects.get(booking=row)
        assert entry.status == PaymentEntry.Status.COMPLETED
        assert entry.source == PaymentEntry.Source.COMPLETION
        assert row.paid_amount == Decimal("2700.00")
        assert row.payment_status == Booking.PaymentStatus.COMPLETED

    def test_bank_transfer_at_return_stays_pending(self, make_booking, staff_admin):
        row = make_booking()

        services.complete_booking(
            row.id,
            staff_admin.pk,
            return_facts(payment_amount=Decimal("2700"), payment_method="bank_transfer"),
        )

        row.refresh_from_db()
        entry = PaymentEntry.objects.get(booking=row)
        assert entry.status == PaymentEntry.Status.PENDING
        assert row.paid_amount == Decimal("0.00")
        assert row.payment_status == Booking.PaymentStatus.PENDING

    def test_paid_amount_from_before_the_ledger_is_kept(self, make_booking, staff_admin):
        row = make_booking(paid_amount=Decimal("800.00"))

        services.complete_booking(
            row.id, staff_admin.pk, return_facts(payment_amount=Decimal("200"))
        )

        row.refresh_from_db()
        assert row.paid_amount == Decimal("1000.00")
        assert row.payment_status == Booking.PaymentStatus.PARTIAL
        sources = dict(PaymentEntry.objects.filter(booking=row).values_list("source", "amount"))
        assert sources == {
            "backfill": Decimal("800.00"),
            "completion": Decimal("200.00"),
        }
        assert finance_services.reconcile_payments() == {"created": 0}

    def test_stored_fee_settings_are_used(self, make_booking, staff_admin):
        AppSetting.objects.create(
            setting_key="late_fee", setting_value={"amount": "0", "grace_period_hours": 2}
        )
        row = make_booking()

        services.complete_booking(row.id, staff_admin.pk, return_facts())

        row.refresh_from_db()
        assert row.late_fee == Decimal("0.00")

    def test_worker_without_permission_is_rejected(self, make_booking, make_worker):
        row = make_booking()
        worker = make_worker()

        with pytest.raises(AuthorizationError):
            services.complete_booking(row.id, worker.pk, return_facts())

        row.refresh_from_db()
        assert row.status == Booking.Status.IN_USE
        assert row.late_fee == Decimal("0.00")

    def test_worker_with_manage_bookings_succeeds(self, make_booking, make_worker):
        row = make_booking()
        worker = make_worker("manageBookings")

        booking = services.complete_booking(row.id, worker.pk, return_facts())

        assert booking.status == BookingStatus.COMPLETED

    def test_status_is_checked_before_permission(self, make_booking, make_worker):
        row = make_booking(status=Booking.Status.RESERVED)
        worker = make_worker()

        with pytest.raises(ConflictError):
            services.complete_booking(row.id, worker.pk, return_facts())

    def test_unknown_booking(self, staff_admin):
        with pytest.raises(NotFoundError):
            services.complete_booking(uuid4(), staff_admin.pk, return_facts())

    def test_second_completion_conflicts(self, make_booking, staff_admin):
        row = make_booking()
        services.complete_booking(row.id, staff_admin.pk, return_facts())

        with pytest.raises(ConflictError):
            services.complete_booking(row.id, staff_admin.pk, return_facts())

    def test_event_is_published_after_commit(
        self, make_booking, staff_admin, isolated_bus, django_capture_on_commit_callbacks
    ):
        received = []
        isolated_bus.register_event_handler(BookingCompleted, received.append)
        row = make_booking()

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            services.complete_booking(row.id, staff_admin.pk, return_facts())
        assert received == []

        for callback in callbacks:
            callback()

        assert len(received) == 1
        assert received[0].booking_id == row.id
        assert received[0].duration_days == 2

    def test_failing_notifier_does_not_undo_completion(
        self, make_booking, staff_admin, isolated_bus, django_capture_on_commit_callbacks
    ):
        def broken_handler(event):
            raise RuntimeError("messaging provider down")

        isolated_bus.register_event_handler(BookingCompleted, broken_handler)
        row = make_booking()

        with django_capture_on_commit_callbacks(execute=True):
            services.complete_booking(row.id, staff_admin.pk, return_facts())

        row.refresh_from_db()
        assert row.status == Booking.Status.COMPLETED


class StaleBookingRepository(DjangoBookingRepository):
    """Hands out a snapshot taken before a concurrent request committed."""

    def __init__(self, snapshot):
        self.snapshot = snapshot

    def get(self, booking_id, lock=False):
        return deepcopy(self.snapshot)


class TestConcurrentCompletion:
    def test_stale_save_is_rejected(self, make_booking):
        row = make_booking()
        repo = DjangoBookingRepository()
        fees = ReturnFees(late_fee=Money.zero(), extension_fee=Money.zero())

        first = repo.get(row.id)
        second = repo.get(row.id)

        first.complete(None, return_facts(), fees, Money.zero())
        repo.save(first, expected_status=BookingStatus.IN_USE)

        second.complete(None, return_facts(damage_charges=Decimal("999")), fees, Money.zero())
        with pytest.raises(ConflictError):
            repo.save(second, expected_status=BookingStatus.IN_USE)

        row.refresh_from_db()
        assert row.damage_charges == Decimal("200.00")

    def test_losing_completion_rolls_back_its_payment(self, make_booking, staff_admin):
        row = make_booking()
        stale = DjangoBookingRepository().get(row.id)

        services.complete_booking(
            row.id, staff_admin.pk, return_facts(payment_amount=Decimal("500"))
        )

        loser = CompleteBookingHandler(
            StaleBookingRepository(stale),
            DjangoPaymentRepository(),
            default_gate(),
            FeeSettingsProvider(),
        )
        with pytest.raises(ConflictError):
            loser.handle(
                CompleteBookingCommand(row.id, staff_admin.pk, return_facts(payment_amount=Decimal("700")))
            )

        row.refresh_from_db()
        assert PaymentEntry.objects.filter(booking=row).count() == 1
        assert row.paid_amount == Decimal("500.00")


class TestOtherTransitions:
    def test_confirm_then_start(self, make_booking, make_worker):
        row = make_booking(status=Booking.Status.RESERVED)
        worker = make_worker("manageBookings")

        services.confirm_booking(row.id, worker.pk)
        services.start_booking(row.id, worker.pk)

        row.refresh_from_db()
        assert row.status == Booking.Status.IN_USE
        assert row.confirmed_at is not None
        assert row.started_at is not None

    def test_cancel(self, make_booking, staff_admin):
        row = make_booking(status=Booking.Status.CONFIRMED)

        services.cancel_booking(row.id, staff_admin.pk, "vehicle unavailable")

        row.refresh_from_db()
        assert row.status == Booking.Status.CANCELLED
        assert row.cancellation_reason == "vehicle unavailable"
        assert row.cancelled_by_id == staff_admin.pk

    def test_completed_booking_cannot_be_cancelled(self, make_booking, staff_admin):
        row = make_booking(status=Booking.Status.COMPLETED)

        with pytest.raises(ConflictError):
            services.cancel_booking(row.id, staff_admin.pk)

    def test_extend_records_history(self, make_booking, make_worker):
        row = make_booking()
        worker = make_worker("editBookings")

        services.extend_booking(
            row.id,
            worker.pk,
            new_end_date=date(2024, 3, 12),
            new_dropoff_time=time(18, 0),
            additional_amount=Decimal("800"),
            reason="customer asked",
        )

        row.refresh_from_db()
        assert row.scheduled_end == date(2024, 3, 12)
        assert row.booking_amount == Decimal("1800.00")
        assert row.total_amount == Decimal("2300.00")
        extension = BookingExtension.objects.get(booking=row)
        assert extension.previous_end_date == date(2024, 3, 10)
        assert extension.created_by_id == worker.pk

    def test_extend_needs_edit_permission(self, make_booking, make_worker):
        row = make_booking()
        worker = make_worker("manageBookings")

        with pytest.raises(AuthorizationError):
            services.extend_booking(row.id, worker.pk, date(2024, 3, 12), time(10, 0))

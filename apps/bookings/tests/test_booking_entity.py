"""Booking aggregate state machine and financial invariants."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.bookings.domain.entities import Booking, BookingStatus, CompletionFacts
from apps.bookings.domain.events import BookingCancelled, BookingCompleted, BookingExtended
from apps.bookings.domain.fees import ReturnFees
from apps.finances.domain.ledger import PaymentMode, PaymentStatus
from shared.domain.exceptions import ConflictError, ValidationError
from shared.domain.value_objects import Money, RentalPeriod

ACTOR = uuid4()


def make_booking(status: BookingStatus = BookingStatus.IN_USE, **overrides) -> Booking:
    fields = dict(
        booking_code="BK2403090001",
        period=RentalPeriod(date(2024, 3, 9), date(2024, 3, 10)),
        pickup_time=time(9, 0),
        dropoff_time=time(10, 0),
        booking_amount=Money(Decimal("1000")),
        security_deposit=Money(Decimal("500")),
        customer_name="Ravi Kumar",
        customer_contact="9876543210",
        status=status,
    )
    fields.update(overrides)
    return Booking(**fields)


def facts(**overrides) -> CompletionFacts:
    values = dict(
        actual_return_time=datetime(2024, 3, 10, 13, 30, tzinfo=timezone.utc),
        damage_charges=Decimal("200"),
        payment_amount=Decimal("0"),
        payment_method="cash",
    )
    values.update(overrides)
    return CompletionFacts(**values)


FEES = ReturnFees(late_fee=Money(Decimal("1000")), extension_fee=Money.zero(), hours_late=3)


class TestTransitions:
    def test_forward_path(self):
        booking = make_booking(BookingStatus.RESERVED)

        booking.confirm(ACTOR)
        booking.start(ACTOR)
        booking.complete(ACTOR, facts(), FEES, Money.zero())

        assert booking.status == BookingStatus.COMPLETED
        assert booking.confirmed_at is not None
        assert booking.started_at is not None
        assert booking.completed_by == ACTOR

    @pytest.mark.parametrize("status", [
        BookingStatus.RESERVED,
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    ])
    def test_complete_requires_in_use(self, status):
        booking = make_booking(status)

        with pytest.raises(ConflictError):
            booking.complete(ACTOR, facts(), FEES, Money.zero())

        assert booking.status == status
        assert booking.damage_charges.is_zero
        assert booking.events == []

    @pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
    def test_terminal_states_never_move(self, status):
        booking = make_booking(status)

        for operation in (booking.confirm, booking.start, booking.cancel):
            with pytest.raises(ConflictError):
                operation(ACTOR)
        assert booking.status == status

    def test_no_backward_transition_exists(self):
        order = [
            BookingStatus.RESERVED,
            BookingStatus.CONFIRMED,
            BookingStatus.IN_USE,
            BookingStatus.COMPLETED,
        ]
        for index, status in enumerate(order):
            for earlier in order[:index]:
                assert not status.can_transition_to(earlier)

    @pytest.mark.parametrize("status", [
        BookingStatus.RESERVED,
        BookingStatus.CONFIRMED,
        BookingStatus.IN_USE,
    ])
    def test_cancel_from_active_states(self, status):
        booking = make_booking(status)

        booking.cancel(ACTOR, "customer no-show")

        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancellation_reason == "customer no-show"
        event = booking.events[-1]
        assert isinstance(event, BookingCancelled)
        assert event.old_status == status.value

    def test_cancel_leaves_fees_untouched(self):
        booking = make_booking(late_fee=Money(Decimal("300")))

        booking.cancel(ACTOR)

        assert booking.late_fee == Money(Decimal("300"))
        assert booking.total_amount == Money(Decimal("1800"))


class TestCompletion:
    def test_total_amount_invariant(self):
        booking = make_booking()

        booking.complete(ACTOR, facts(), FEES, Money.zero())

        assert booking.total_amount == (
            booking.booking_amount
            + booking.security_deposit
            + booking.late_fee
            + booking.extension_fee
            + booking.damage_charges
        )
        assert booking.total_amount == Money(Decimal("2700"))
        assert booking.additional_charges == Money(Decimal("1200"))

    def test_refund_is_deposit_minus_damages_floored(self):
        booking = make_booking()
        booking.complete(ACTOR, facts(damage_charges=Decimal("200")), FEES, Money.zero())
        assert booking.refund_amount == Money(Decimal("300"))

        heavy = make_booking()
        heavy.complete(ACTOR, facts(damage_charges=Decimal("900")), FEES, Money.zero())
        assert heavy.refund_amount == Money.zero()

    def test_payment_status_follows_paid_amount(self):
        booking = make_booking()

        booking.complete(ACTOR, facts(payment_amount=Decimal("2700")), FEES, Money(Decimal("2700")))

        assert booking.payment_status == PaymentStatus.COMPLETED
        assert booking.balance_due.is_zero

    def test_completed_event_carries_financial_summary(self):
        booking = make_booking()

        booking.complete(
            ACTOR,
            facts(payment_amount=Decimal("1000"), payment_method="upi"),
            FEES,
            Money(Decimal("1000")),
        )

        event = booking.events[-1]
        assert isinstance(event, BookingCompleted)
        assert event.customer_ref == "9876543210"
        assert event.total_fare == Money(Decimal("2700"))
        assert event.duration_days == 2
        assert event.payment_method == "upi"
        assert event.payment_status == PaymentStatus.PARTIAL.value
        assert booking.payment_mode == PaymentMode.UPI

        payload = event.to_dict()
        assert payload["event_type"] == "BookingCompleted"
        assert payload["total_fare"] == "2700.00"
        assert payload["booking_id"] == str(booking.id)

    def test_negative_damage_charges_rejected(self):
        with pytest.raises(ValidationError) as exc:
            facts(damage_charges=Decimal("-1"))
        assert exc.value.field == "damage_charges"

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            facts(payment_method="cheque")


class TestExtension:
    def test_extend_moves_return_and_adds_amount(self):
        booking = make_booking(BookingStatus.CONFIRMED)

        extension = booking.extend(ACTOR, date(2024, 3, 12), time(18, 0), Money(Decimal("800")), "trip longer")

        assert booking.period.end_date == date(2024, 3, 12)
        assert booking.dropoff_time == time(18, 0)
        assert booking.booking_amount == Money(Decimal("1800"))
        assert booking.duration_days == 4
        assert extension.previous_end_date == date(2024, 3, 10)
        assert isinstance(booking.events[-1], BookingExtended)

    def test_same_day_later_time_is_an_extension(self):
        booking = make_booking()

        booking.extend(ACTOR, date(2024, 3, 10), time(15, 0), Money.zero())

        assert booking.dropoff_time == time(15, 0)

    def test_new_return_must_be_later(self):
        booking = make_booking()

        with pytest.raises(ValidationError):
            booking.extend(ACTOR, date(2024, 3, 10), time(10, 0), Money.zero())

    def test_at_most_thirty_days(self):
        booking = make_booking()

        booking.extend(ACTOR, date(2024, 3, 10) + timedelta(days=30), time(10, 0), Money.zero())
        with pytest.raises(ValidationError):
            booking.extend(ACTOR, booking.period.end_date + timedelta(days=31), time(10, 0), Money.zero())

    def test_terminal_booking_cannot_be_extended(self):
        booking = make_booking(BookingStatus.COMPLETED)

        with pytest.raises(ConflictError):
            booking.extend(ACTOR, date(2024, 3, 12), time(10, 0), Money.zero())

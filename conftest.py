"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import pytest

from shared.application.message_bus import message_bus


@pytest.fixture
def staff_admin(django_user_model):
    return django_user_model.objects.create_user(
        email="admin@rentflow.test", password="pass12345", username="admin", role="admin"
    )


@pytest.fixture
def make_worker(django_user_model):
    """Worker factory: ``make_worker("manageBookings", ...)`` grants the given flags."""

    counter = {"n": 0}

    def _make(*flags: str, **extra):
        counter["n"] += 1
        user = django_user_model.objects.create_user(
            email=f"worker{counter['n']}@rentflow.test",
            password="pass12345",
            username=f"worker{counter['n']}",
            role="worker",
            **extra,
        )
        if flags:
            user.grant(*flags)
        return user

    return _make


@pytest.fixture
def make_booking(db):
    """Create a booking row; defaults describe an in-use two-day scooter rental."""
    from apps.bookings.models import Booking

    def _make(**overrides):
        fields = {
            "customer_name": "Ravi Kumar",
            "customer_contact": "9876543210",
            "vehicle_model": "Honda Activa",
            "vehicle_registration": "TS09AB1234",
            "scheduled_start": date(2024, 3, 9),
            "scheduled_end": date(2024, 3, 10),
            "scheduled_pickup_time": time(9, 0),
            "scheduled_dropoff_time": time(10, 0),
            "booking_amount": Decimal("1000.00"),
            "security_deposit": Decimal("500.00"),
            "status": Booking.Status.IN_USE,
        }
        fields.update(overrides)
        return Booking.objects.create(**fields)

    return _make


@pytest.fixture
def isolated_bus(monkeypatch):
    """Replace the process-wide handler registry with an empty one for the test."""
    monkeypatch.setattr(message_bus, "_event_handlers", {})
    return message_bus

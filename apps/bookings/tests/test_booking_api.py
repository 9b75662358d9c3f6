"""Tests for the booking lifecycle endpoints."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import uuid4

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.finances.models import PaymentEntry
from apps.users.models import User


class BookingAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="desk@rentflow.test", password="StrongPass123", username="desk", role="admin"
        )
        self.worker = User.objects.create_user(
            email="helper@rentflow.test", password="StrongPass123", username="helper", role="worker"
        )
        self.booking = Booking.objects.create(
            customer_name="Ravi Kumar",
            customer_contact="9876543210",
            vehicle_model="Honda Activa",
            vehicle_registration="TS09AB1234",
            scheduled_start=date(2024, 3, 9),
            scheduled_end=date(2024, 3, 10),
            scheduled_pickup_time=time(9, 0),
            scheduled_dropoff_time=time(10, 0),
            booking_amount=Decimal("1000.00"),
            security_deposit=Decimal("500.00"),
            status=Booking.Status.IN_USE,
        )
        self.return_form = {
            "actual_return_time": "2024-03-10T13:30:00+05:30",
            "damage_charges": "200.00",
            "payment_amount": "2700.00",
            "payment_method": "upi",
        }

    def complete_url(self, booking_id) -> str:
        return reverse("booking-complete", args=[booking_id])

    def test_complete_booking(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.complete_url(self.booking.id), self.return_form, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["late_fee"], "1000.00")
        self.assertEqual(response.data["total_amount"], "2700.00")
        self.assertEqual(response.data["payment_status"], "completed")
        self.assertEqual(response.data["balance_due"], "0.00")
        self.assertEqual(response.data["duration_days"], 2)
        self.assertEqual(PaymentEntry.objects.filter(booking=self.booking).count(), 1)

    def test_complete_requires_permission(self) -> None:
        self.client.force_authenticate(self.worker)
        response = self.client.post(self.complete_url(self.booking.id), self.return_form, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.IN_USE)

    def test_complete_twice_conflicts(self) -> None:
        self.client.force_authenticate(self.admin)
        self.client.post(self.complete_url(self.booking.id), self.return_form, format="json")
        response = self.client.post(self.complete_url(self.booking.id), self.return_form, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "conflict")

    def test_complete_unknown_booking(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.complete_url(uuid4()), self.return_form, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_negative_damage_is_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        form = dict(self.return_form, damage_charges="-5")
        response = self.client.post(self.complete_url(self.booking.id), form, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_anonymous_request_is_rejected(self) -> None:
        response = self.client.post(self.complete_url(self.booking.id), self.return_form, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_needs_view_permission(self) -> None:
        self.client.force_authenticate(self.worker)
        self.worker.revoke("viewBookings")
        response = self.client.get(reverse("booking-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.worker.grant("viewBookings")
        response = self.client.get(reverse("booking-list"), {"status": "in_use"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 1)

    def test_cancel_and_extend(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("booking-extend", args=[self.booking.id]),
            {"new_end_date": "2024-03-11", "new_dropoff_time": "10:00", "additional_amount": "500"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking_amount"], "1500.00")
        self.assertEqual(len(response.data["extensions"]), 1)

        response = self.client.post(
            reverse("booking-cancel", args=[self.booking.id]), {"reason": "breakdown"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")

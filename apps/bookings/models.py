"""Booking persistence models for RentFlow."""

from __future__ import annotations

import secrets
import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.finances.domain.ledger import derive_payment_status

MONEY = {"max_digits": 12, "decimal_places": 2, "default": Decimal("0.00"),
         "validators": [MinValueValidator(Decimal("0.00"))]}


class Booking(models.Model):
    """Vehicle rental booking row."""

    class Status(models.TextChoices):
        RESERVED = "reserved", _("Reserved")
        CONFIRMED = "confirmed", _("Confirmed")
        IN_USE = "in_use", _("In use")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PARTIAL = "partial", _("Partial")
        COMPLETED = "completed", _("Completed")

    class PaymentMode(models.TextChoices):
        CASH = "cash", _("Cash")
        UPI = "upi", _("UPI")
        CARD = "card", _("Card")
        BANK_TRANSFER = "bank_transfer", _("Bank transfer")
        OTHER = "other", _("Other")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_code = models.CharField(max_length=20, unique=True, editable=False)

    customer_name = models.CharField(max_length=255)
    customer_contact = models.CharField(max_length=20, help_text=_("Customer phone, used for WhatsApp."))
    customer_email = models.EmailField(blank=True)
    vehicle_model = models.CharField(max_length=100, blank=True)
    vehicle_registration = models.CharField(max_length=20, blank=True, db_index=True)

    scheduled_start = models.DateField()
    scheduled_end = models.DateField()
    scheduled_pickup_time = models.TimeField()
    scheduled_dropoff_time = models.TimeField()
    actual_return_time = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RESERVED)

    booking_amount = models.DecimalField(**MONEY)
    security_deposit = models.DecimalField(**MONEY)
    late_fee = models.DecimalField(**MONEY)
    extension_fee = models.DecimalField(**MONEY)
    damage_charges = models.DecimalField(**MONEY)
    refund_amount = models.DecimalField(**MONEY)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text=_("booking + deposit + late fee + extension fee + damages"),
    )
    paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Sum of settled ledger entries."),
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        editable=False,
    )
    payment_mode = models.CharField(max_length=20, choices=PaymentMode.choices, default=PaymentMode.CASH)

    # Return inspection
    damage_description = models.TextField(blank=True)
    vehicle_remarks = models.TextField(blank=True)
    odometer_reading = models.PositiveIntegerField(null=True, blank=True)
    fuel_level = models.CharField(max_length=20, blank=True)
    inspection_notes = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_bookings",
    )
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="completed_bookings",
    )
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_bookings",
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(scheduled_end__gte=models.F("scheduled_start")),
                name="booking_valid_period",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["scheduled_end", "status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_code} ({self.status})"

    @staticmethod
    def generate_booking_code() -> str:
        stamp = timezone.localtime().strftime("%y%m%d%H%M")
        return f"BK{stamp}{secrets.token_hex(2).upper()}"

    def compute_total_amount(self) -> Decimal:
        return (
            Decimal(self.booking_amount)
            + Decimal(self.security_deposit)
            + Decimal(self.late_fee)
            + Decimal(self.extension_fee)
            + Decimal(self.damage_charges)
        )

    def refresh_derived_fields(self) -> None:
        self.total_amount = self.compute_total_amount()
        self.payment_status = derive_payment_status(
            Decimal(self.paid_amount), self.total_amount
        ).value

    def save(self, *args, **kwargs):  # type: ignore
        if not self.booking_code:
            self.booking_code = self.generate_booking_code()
        self.refresh_derived_fields()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"total_amount", "payment_status"}
        super().save(*args, **kwargs)


class BookingExtension(models.Model):
    """Append-only history of schedule extensions."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="extensions")
    previous_end_date = models.DateField()
    previous_dropoff_time = models.TimeField()
    new_end_date = models.DateField()
    new_dropoff_time = models.TimeField()
    additional_amount = models.DecimalField(**MONEY)
    reason = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Booking extension")
        verbose_name_plural = _("Booking extensions")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.previous_end_date} -> {self.new_end_date}"

"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.finances.models import PaymentEntry

from .models import Booking, BookingExtension


class BookingExtensionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingExtension
        fields = [
            "id",
            "previous_end_date",
            "previous_dropoff_time",
            "new_end_date",
            "new_dropoff_time",
            "additional_amount",
            "reason",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Read model of a booking with its financial summary."""

    duration_days = serializers.SerializerMethodField()
    additional_charges = serializers.SerializerMethodField()
    balance_due = serializers.SerializerMethodField()
    extensions = BookingExtensionSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "status",
            "customer_name",
            "customer_contact",
            "customer_email",
            "vehicle_model",
            "vehicle_registration",
            "scheduled_start",
            "scheduled_end",
            "scheduled_pickup_time",
            "scheduled_dropoff_time",
            "actual_return_time",
            "duration_days",
            "booking_amount",
            "security_deposit",
            "late_fee",
            "extension_fee",
            "damage_charges",
            "additional_charges",
            "total_amount",
            "paid_amount",
            "balance_due",
            "refund_amount",
            "payment_status",
            "payment_mode",
            "damage_description",
            "vehicle_remarks",
            "odometer_reading",
            "fuel_level",
            "inspection_notes",
            "notes",
            "cancellation_reason",
            "created_by",
            "completed_by",
            "cancelled_by",
            "confirmed_at",
            "started_at",
            "completed_at",
            "cancelled_at",
            "created_at",
            "updated_at",
            "extensions",
        ]
        read_only_fields = fields

    def get_duration_days(self, obj: Booking) -> int:
        return (obj.scheduled_end - obj.scheduled_start).days + 1

    def get_additional_charges(self, obj: Booking) -> str:
        return str(obj.late_fee + obj.extension_fee + obj.damage_charges)

    def get_balance_due(self, obj: Booking) -> str:
        return str(max(obj.total_amount - obj.paid_amount, Decimal("0.00")))


class CompleteBookingSerializer(serializers.Serializer):
    """Return desk form submitted when the vehicle comes back."""

    actual_return_time = serializers.DateTimeField()
    damage_charges = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    payment_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentEntry.Mode.choices, default=PaymentEntry.Mode.CASH
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    damage_description = serializers.CharField(required=False, allow_blank=True, default="")
    vehicle_remarks = serializers.CharField(required=False, allow_blank=True, default="")
    odometer_reading = serializers.IntegerField(required=False, allow_null=True, min_value=0, default=None)
    fuel_level = serializers.CharField(required=False, allow_blank=True, max_length=20, default="")
    inspection_notes = serializers.CharField(required=False, allow_blank=True, default="")


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class ExtendBookingSerializer(serializers.Serializer):
    new_end_date = serializers.DateField()
    new_dropoff_time = serializers.TimeField()
    additional_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    reason = serializers.CharField(required=False, allow_blank=True, default="")

"""Serializers for the finance domain (ledger and fee settings)."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import PaymentEntry


class PaymentEntrySerializer(serializers.ModelSerializer):
    booking_code = serializers.CharField(source="booking.booking_code", read_only=True)

    class Meta:
        model = PaymentEntry
        fields = [
            "id",
            "booking",
            "booking_code",
            "amount",
            "mode",
            "status",
            "source",
            "notes",
            "created_by",
            "settled_at",
            "created_at",
        ]
        read_only_fields = fields


class RecordPaymentSerializer(serializers.Serializer):
    """Input of ``POST /finances/payments/``."""

    booking = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    mode = serializers.ChoiceField(choices=PaymentEntry.Mode.choices, default=PaymentEntry.Mode.CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class LateFeeSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    grace_period_hours = serializers.IntegerField(min_value=0)


class ExtensionFeeSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    threshold_hours = serializers.IntegerField(min_value=0)


class FeeSettingsSerializer(serializers.Serializer):
    late_fee = LateFeeSerializer()
    extension_fee = ExtensionFeeSerializer()

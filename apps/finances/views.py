"""API views for the payment ledger and fee settings.

Ledger entries are never edited or deleted through the API: staff
record new entries and settle pending ones. Every write goes through
the service layer, which performs the authoritative permission check.
"""

from __future__ import annotations

import logging
from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import HasActionPermission
from apps.users.domain.authorization import Action

from . import services
from .models import PaymentEntry
from .serializers import FeeSettingsSerializer, PaymentEntrySerializer, RecordPaymentSerializer

logger = logging.getLogger(__name__)

UUID_PATTERN = r"[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}"


class PaymentEntryViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """List, record and settle ledger entries."""

    queryset = PaymentEntry.objects.select_related("booking").all()
    serializer_class = PaymentEntrySerializer
    permission_classes = [permissions.IsAuthenticated, HasActionPermission]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["booking", "status", "mode", "source"]
    lookup_value_regex = UUID_PATTERN
    required_actions = {
        "list": Action.VIEW_PAYMENTS,
        "retrieve": Action.VIEW_PAYMENTS,
    }

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = services.record_payment(
            booking_id=data["booking"],
            amount=data["amount"],
            mode=data["mode"],
            actor_id=request.user.pk,
            notes=data["notes"],
        )
        instance = self.get_queryset().get(pk=entry.id)
        return Response(PaymentEntrySerializer(instance).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def settle(self, request, pk=None):  # type: ignore
        entry = services.settle_payment(UUID(pk), request.user.pk)
        instance = self.get_queryset().get(pk=entry.id)
        return Response(PaymentEntrySerializer(instance).data)


class FeeSettingsView(APIView):
    """Read or replace the late / extension fee parameters."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        return Response(services.get_fee_settings().to_primitive())

    def put(self, request):  # type: ignore
        serializer = FeeSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        updated = services.update_fee_settings(
            request.user.pk,
            late_fee_amount=data["late_fee"]["amount"],
            grace_period_hours=data["late_fee"]["grace_period_hours"],
            extension_fee_amount=data["extension_fee"]["amount"],
            threshold_hours=data["extension_fee"]["threshold_hours"],
        )
        return Response(updated.to_primitive())

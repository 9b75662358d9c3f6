"""API views for the booking domain.

Bookings are read through a read-only viewset; every lifecycle change is
a POST action routed through ``services``, where the status precondition
and the authoritative permission check live.
"""

from __future__ import annotations

import logging
from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import filters, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import HasActionPermission
from apps.users.domain.authorization import Action

from . import services
from .domain.entities import CompletionFacts
from .models import Booking
from .serializers import (
    BookingSerializer,
    CancelBookingSerializer,
    CompleteBookingSerializer,
    ExtendBookingSerializer,
)

logger = logging.getLogger(__name__)

UUID_PATTERN = r"[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}"


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Viewset for reading bookings and driving their lifecycle."""

    queryset = Booking.objects.prefetch_related("extensions").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, HasActionPermission]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["status", "payment_status", "scheduled_end"]
    search_fields = ["booking_code", "customer_name", "customer_contact", "vehicle_registration"]
    ordering_fields = ["created_at", "scheduled_start", "scheduled_end", "total_amount"]
    lookup_value_regex = UUID_PATTERN
    required_actions = {
        "list": Action.VIEW_BOOKINGS,
        "retrieve": Action.VIEW_BOOKINGS,
    }

    def _respond(self, booking_id: UUID) -> Response:
        instance = self.get_queryset().get(pk=booking_id)
        return Response(BookingSerializer(instance, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        serializer = CompleteBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        facts = CompletionFacts(**serializer.validated_data)
        booking = services.complete_booking(UUID(pk), request.user.pk, facts)
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = services.cancel_booking(UUID(pk), request.user.pk, serializer.validated_data["reason"])
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking = services.confirm_booking(UUID(pk), request.user.pk)
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):  # type: ignore
        booking = services.start_booking(UUID(pk), request.user.pk)
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def extend(self, request, pk=None):  # type: ignore
        serializer = ExtendBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = services.extend_booking(
            UUID(pk),
            request.user.pk,
            new_end_date=data["new_end_date"],
            new_dropoff_time=data["new_dropoff_time"],
            additional_amount=data["additional_amount"],
            reason=data["reason"],
        )
        return self._respond(booking.id)

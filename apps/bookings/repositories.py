"""
Booking Repository

Maps the Booking aggregate to the ``bookings.Booking`` table.

Status changes are committed with an optimistic precondition: the row is
only updated while it still carries the status the aggregate was loaded
with. Zero updated rows means another request won the race.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from django.utils import timezone

from shared.domain.exceptions import ConflictError, NotFoundError
from shared.domain.value_objects import Money, RentalPeriod
from shared.infrastructure.locking import lock_queryset_if_possible
from apps.bookings.domain.entities import Booking, BookingExtension, BookingStatus
from apps.finances.domain.ledger import PaymentMode

from .models import Booking as BookingModel
from .models import BookingExtension as BookingExtensionModel

logger = logging.getLogger(__name__)

MONEY_FIELDS = (
    'booking_amount',
    'security_deposit',
    'late_fee',
    'extension_fee',
    'damage_charges',
    'refund_amount',
    'paid_amount',
)


class DjangoBookingRepository:

    def get_by_id(self, booking_id: UUID, lock: bool = False) -> Optional[Booking]:
        """
        Load a booking aggregate

        With ``lock=True`` the row is selected FOR UPDATE when running
        inside a transaction, which serializes money-touching operations
        on the same booking.
        """
        queryset = BookingModel.objects.filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        if row is None:
            return None
        return self.to_entity(row)

    def get(self, booking_id: UUID, lock: bool = False) -> Booking:
        booking = self.get_by_id(booking_id, lock=lock)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def add(self, booking: Booking) -> None:
        """Insert a new booking row"""
        row = BookingModel(id=booking.id, created_at=booking.created_at)
        for name, value in self._to_columns(booking).items():
            setattr(row, name, value)
        row.save(force_insert=True)

    def save(self, booking: Booking, expected_status: BookingStatus) -> None:
        """
        Persist the aggregate if the stored status is still ``expected_status``

        Raises:
            ConflictError: the row changed status since it was loaded
        """
        columns = self._to_columns(booking)
        columns['updated_at'] = timezone.now()

        updated = BookingModel.objects.filter(
            pk=booking.id,
            status=expected_status.value,
        ).update(**columns)

        if updated == 0:
            logger.warning(
                f"Optimistic precondition failed for booking {booking.booking_code}: "
                f"expected status {expected_status.value}"
            )
            raise ConflictError(
                f"Booking {booking.booking_code} is no longer {expected_status.value}"
            )

    def add_extension(self, extension: BookingExtension) -> None:
        BookingExtensionModel.objects.create(
            booking_id=extension.booking_id,
            previous_end_date=extension.previous_end_date,
            previous_dropoff_time=extension.previous_dropoff_time,
            new_end_date=extension.new_end_date,
            new_dropoff_time=extension.new_dropoff_time,
            additional_amount=extension.additional_amount.amount,
            reason=extension.reason,
            created_by_id=extension.created_by,
            created_at=extension.created_at,
        )

    @staticmethod
    def _to_columns(booking: Booking) -> dict:
        columns = {name: getattr(booking, name).amount for name in MONEY_FIELDS}
        columns.update({
            'booking_code': booking.booking_code,
            'customer_name': booking.customer_name,
            'customer_contact': booking.customer_contact,
            'customer_email': booking.customer_email,
            'vehicle_model': booking.vehicle_model,
            'vehicle_registration': booking.vehicle_registration,
            'scheduled_start': booking.period.start_date,
            'scheduled_end': booking.period.end_date,
            'scheduled_pickup_time': booking.pickup_time,
            'scheduled_dropoff_time': booking.dropoff_time,
            'actual_return_time': booking.actual_return_time,
            'status': booking.status.value,
            'total_amount': booking.total_amount.amount,
            'payment_status': booking.payment_status.value,
            'payment_mode': booking.payment_mode.value,
            'damage_description': booking.damage_description,
            'vehicle_remarks': booking.vehicle_remarks,
            'odometer_reading': booking.odometer_reading,
            'fuel_level': booking.fuel_level,
            'inspection_notes': booking.inspection_notes,
            'notes': booking.notes,
            'cancellation_reason': booking.cancellation_reason,
            'created_by_id': booking.created_by,
            'completed_by_id': booking.completed_by,
            'cancelled_by_id': booking.cancelled_by,
            'confirmed_at': booking.confirmed_at,
            'started_at': booking.started_at,
            'completed_at': booking.completed_at,
            'cancelled_at': booking.cancelled_at,
        })
        return columns

    @staticmethod
    def to_entity(row: BookingModel) -> Booking:
        money = {name: Money(Decimal(getattr(row, name))) for name in MONEY_FIELDS}
        return Booking(
            id=row.id,
            booking_code=row.booking_code,
            period=RentalPeriod(row.scheduled_start, row.scheduled_end),
            pickup_time=row.scheduled_pickup_time,
            dropoff_time=row.scheduled_dropoff_time,
            payment_mode=PaymentMode.parse(row.payment_mode),
            customer_name=row.customer_name,
            customer_contact=row.customer_contact,
            customer_email=row.customer_email,
            vehicle_model=row.vehicle_model,
            vehicle_registration=row.vehicle_registration,
            status=BookingStatus(row.status),
            actual_return_time=row.actual_return_time,
            damage_description=row.damage_description,
            vehicle_remarks=row.vehicle_remarks,
            odometer_reading=row.odometer_reading,
            fuel_level=row.fuel_level,
            inspection_notes=row.inspection_notes,
            notes=row.notes,
            cancellation_reason=row.cancellation_reason,
            created_by=row.created_by_id,
            completed_by=row.completed_by_id,
            cancelled_by=row.cancelled_by_id,
            confirmed_at=row.confirmed_at,
            started_at=row.started_at,
            completed_at=row.completed_at,
            cancelled_at=row.cancelled_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **money,
        )

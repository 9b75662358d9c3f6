"""
Payment Repository

Ledger entries are append-only: new entries are inserted, existing
entries only ever change status from pending to completed.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from django.db.models import Exists, OuterRef

from shared.domain.exceptions import NotFoundError
from shared.domain.value_objects import Money
from shared.infrastructure.locking import lock_queryset_if_possible
from apps.finances.domain.ledger import (
    EntrySource,
    EntryStatus,
    PaymentEntry,
    PaymentLedger,
    PaymentMode,
)

from .models import PaymentEntry as PaymentEntryModel

logger = logging.getLogger(__name__)


class DjangoPaymentRepository:

    def get_ledger(self, booking_id: UUID) -> PaymentLedger:
        rows = PaymentEntryModel.objects.filter(booking_id=booking_id).order_by('created_at')
        return PaymentLedger.from_entries(booking_id, (self.to_entity(row) for row in rows))

    def get_entry(self, entry_id: UUID) -> Optional[PaymentEntry]:
        row = PaymentEntryModel.objects.filter(pk=entry_id).first()
        return self.to_entity(row) if row else None

    def get_entry_or_404(self, entry_id: UUID) -> PaymentEntry:
        entry = self.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Payment {entry_id} not found")
        return entry

    def add(self, entry: PaymentEntry) -> None:
        PaymentEntryModel.objects.create(
            id=entry.id,
            booking_id=entry.booking_id,
            amount=entry.amount.amount,
            mode=entry.mode.value,
            status=entry.status.value,
            source=entry.source.value,
            notes=entry.notes,
            created_by_id=entry.created_by,
            settled_at=entry.settled_at,
            created_at=entry.created_at,
        )
        logger.debug(f"Recorded ledger entry {entry.id} for booking {entry.booking_id}")

    def save_status(self, entry: PaymentEntry) -> None:
        PaymentEntryModel.objects.filter(pk=entry.id).update(
            status=entry.status.value,
            settled_at=entry.settled_at,
            updated_at=entry.updated_at,
        )

    def booking_ids_missing_entries(self) -> List[UUID]:
        """Bookings with a positive paid amount and no ledger entries"""
        from apps.bookings.models import Booking as BookingModel

        has_entries = PaymentEntryModel.objects.filter(booking_id=OuterRef('pk'))
        return list(
            BookingModel.objects
            .filter(paid_amount__gt=Decimal('0'))
            .exclude(Exists(has_entries))
            .order_by('created_at')
            .values_list('pk', flat=True)
        )

    def lock_booking_row(self, booking_id: UUID):
        """
        Lock the booking row for the check-then-insert of the backfill

        Returns the locked row's snapshot or None if it disappeared.
        """
        from apps.bookings.models import Booking as BookingModel

        queryset = lock_queryset_if_possible(BookingModel.objects.filter(pk=booking_id))
        return queryset.values(
            'paid_amount', 'payment_mode', 'created_at', 'created_by_id',
        ).first()

    @staticmethod
    def to_entity(row: PaymentEntryModel) -> PaymentEntry:
        return PaymentEntry(
            id=row.id,
            booking_id=row.booking_id,
            amount=Money(Decimal(row.amount)),
            mode=PaymentMode.parse(row.mode),
            status=EntryStatus(row.status),
            source=EntrySource(row.source),
            created_by=row.created_by_id,
            settled_at=row.settled_at,
            notes=row.notes,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

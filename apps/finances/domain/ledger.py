"""
Payment Ledger Domain

The ledger is the append-only set of payment entries backing a booking's
paid amount. Only settled (``completed``) entries count towards the paid
amount; ``pending`` entries wait for settlement (e.g. a bank transfer
that has not cleared yet).

Invariants:
- paid_amount == sum of completed entries for the booking
- payment status is a pure function of paid_amount and total_amount
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List
from uuid import UUID

from shared.domain.base import Entity, utc_now
from shared.domain.exceptions import ConflictError, NotFoundError, ValidationError
from shared.domain.value_objects import Money, money_sum


class PaymentStatus(Enum):
    """Booking-level payment status, always derived"""
    PENDING = 'pending'
    PARTIAL = 'partial'
    COMPLETED = 'completed'


class PaymentMode(Enum):
    CASH = 'cash'
    UPI = 'upi'
    CARD = 'card'
    BANK_TRANSFER = 'bank_transfer'
    OTHER = 'other'

    @property
    def settles_immediately(self) -> bool:
        """Money is in hand the moment the entry is recorded"""
        return self in (PaymentMode.CASH, PaymentMode.UPI, PaymentMode.CARD)

    @classmethod
    def parse(cls, value) -> 'PaymentMode':
        if isinstance(value, cls):
            return value
        try:
            return cls(value or cls.CASH.value)
        except ValueError:
            raise ValidationError(f"Unknown payment mode: {value}", field='mode')


class EntryStatus(Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'


class EntrySource(Enum):
    MANUAL = 'manual'
    COMPLETION = 'completion'
    BACKFILL = 'backfill'


BACKFILL_NOTE = 'Backfilled from booking paid amount'


def derive_payment_status(paid: Decimal, total: Decimal) -> PaymentStatus:
    """
    Payment status of a booking

    completed iff paid >= total; pending iff nothing paid; partial otherwise.
    """
    if paid >= total:
        return PaymentStatus.COMPLETED
    if paid == 0:
        return PaymentStatus.PENDING
    return PaymentStatus.PARTIAL


@dataclass(eq=False)
class PaymentEntry(Entity):
    """A single payment received (or expected) for a booking"""

    booking_id: UUID
    amount: Money
    mode: PaymentMode = PaymentMode.CASH
    status: EntryStatus = EntryStatus.COMPLETED
    source: EntrySource = EntrySource.MANUAL
    created_by: UUID | None = None
    settled_at: datetime | None = None
    notes: str = ''

    def __post_init__(self):
        if self.amount.is_zero:
            raise ValidationError("Payment amount must be greater than zero", field='amount')

    @property
    def is_settled(self) -> bool:
        return self.status == EntryStatus.COMPLETED

    def settle(self, at: datetime | None = None):
        if self.is_settled:
            raise ConflictError(f"Payment {self.id} is already settled")
        self.status = EntryStatus.COMPLETED
        self.settled_at = at or utc_now()
        self.updated_at = self.settled_at


@dataclass
class PaymentLedger:
    """
    All ledger entries of one booking

    Loaded by the payment repository under the booking row lock, so the
    aggregate computed here is the one committed with the booking.
    """

    booking_id: UUID
    entries: List[PaymentEntry] = field(default_factory=list)
    currency: str = 'INR'

    def record(
        self,
        amount: Money,
        mode: PaymentMode,
        actor_id: UUID | None,
        *,
        source: EntrySource = EntrySource.MANUAL,
        created_at: datetime | None = None,
        settled: bool | None = None,
        notes: str = '',
    ) -> PaymentEntry:
        """
        Append a payment entry

        Entries paid by a method that settles immediately are recorded as
        completed; others stay pending until ``settle``.
        """
        if settled is None:
            settled = mode.settles_immediately
        timestamp = created_at or utc_now()

        entry = PaymentEntry(
            booking_id=self.booking_id,
            amount=amount,
            mode=mode,
            status=EntryStatus.COMPLETED if settled else EntryStatus.PENDING,
            source=source,
            created_by=actor_id,
            settled_at=timestamp if settled else None,
            notes=notes,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.entries.append(entry)
        return entry

    def backfill(
        self,
        paid_amount: Money,
        mode: PaymentMode,
        actor_id: UUID | None,
        created_at: datetime | None = None,
    ) -> PaymentEntry | None:
        """
        Adopt a paid amount stored on the booking before the ledger existed

        Only an empty ledger adopts it, as one settled entry dated at
        ``created_at``. Returns None when there is nothing to adopt.
        """
        if not self.is_empty or paid_amount.is_zero:
            return None
        return self.record(
            paid_amount,
            mode,
            actor_id,
            source=EntrySource.BACKFILL,
            created_at=created_at,
            settled=True,
            notes=BACKFILL_NOTE,
        )

    def get(self, entry_id: UUID) -> PaymentEntry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise NotFoundError(f"Payment {entry_id} not found")

    def settle(self, entry_id: UUID, at: datetime | None = None) -> PaymentEntry:
        entry = self.get(entry_id)
        entry.settle(at)
        return entry

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def paid_amount(self) -> Money:
        return money_sum((e.amount for e in self.entries if e.is_settled), self.currency)

    @property
    def pending_amount(self) -> Money:
        return money_sum((e.amount for e in self.entries if not e.is_settled), self.currency)

    def payment_status(self, total: Money) -> PaymentStatus:
        return derive_payment_status(self.paid_amount.amount, total.amount)

    @classmethod
    def from_entries(cls, booking_id: UUID, entries: Iterable[PaymentEntry]) -> 'PaymentLedger':
        return cls(booking_id=booking_id, entries=list(entries))

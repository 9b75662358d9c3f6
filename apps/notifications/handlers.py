"""Message bus subscribers turning booking events into notifications."""

from __future__ import annotations

import logging

from apps.bookings.domain.events import BookingCancelled, BookingCompleted, BookingExtended
from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

NOTIFIED_EVENTS = (BookingCompleted, BookingCancelled, BookingExtended)


def notify_customer(event: DomainEvent) -> None:
    """Queue the customer message; runs after the booking change committed."""
    from .tasks import send_booking_notification

    try:
        send_booking_notification.delay(event.to_dict())
    except Exception as exc:  # noqa: BLE001
        # Broker outages must not surface to the request that committed the change.
        logger.error(
            "Could not queue %s notification for %s: %s",
            type(event).__name__,
            event.aggregate_id,
            exc,
            exc_info=True,
        )


def register(bus: MessageBus) -> None:
    for event_type in NOTIFIED_EVENTS:
        bus.register_event_handler(event_type, notify_customer)

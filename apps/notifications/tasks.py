"""Celery tasks delivering customer notifications."""

from __future__ import annotations

import logging
from typing import Any

import requests  # type: ignore
from celery import shared_task  # type: ignore

from .models import NotificationLog
from .services import NotificationError, format_phone_number, render_message, send_whatsapp_message

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


@shared_task(
    bind=True,
    name="notifications.send_booking_notification",
    autoretry_for=(requests.RequestException,),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=MAX_RETRIES,
)
def send_booking_notification(self, payload: dict[str, Any]) -> str:
    """
    Render and send the WhatsApp message for a booking event.

    ``payload`` is ``DomainEvent.to_dict()``. Delivery is keyed by the
    event id, so a redelivered task never messages the customer twice.
    """
    log, _ = NotificationLog.objects.get_or_create(
        event_id=payload["event_id"],
        defaults={
            "booking_id": payload.get("booking_id"),
            "event_type": payload["event_type"],
        },
    )
    if log.status in (NotificationLog.Status.SENT, NotificationLog.Status.SKIPPED):
        logger.info("Notification for event %s already %s", log.event_id, log.status)
        return log.status

    log.attempts += 1
    try:
        log.recipient = format_phone_number(payload.get("customer_ref", ""))
        log.message = render_message(payload)
        response = send_whatsapp_message(log.recipient, log.message)
    except NotificationError as exc:
        logger.warning("Skipping %s notification for event %s: %s", log.event_type, log.event_id, exc)
        log.status = NotificationLog.Status.SKIPPED
        log.error = str(exc)
        log.save()
        return log.status
    except requests.RequestException as exc:
        logger.error(
            "WhatsApp delivery failed for event %s (attempt %s): %s",
            log.event_id,
            log.attempts,
            exc,
            exc_info=True,
        )
        log.status = NotificationLog.Status.FAILED
        log.error = str(exc)
        log.save()
        raise

    messages = response.get("messages") or [{}]
    log.provider_message_id = messages[0].get("id", "")
    log.status = NotificationLog.Status.SENT
    log.error = ""
    log.save()
    logger.info("Sent %s notification for booking %s", log.event_type, payload.get("booking_code"))
    return log.status

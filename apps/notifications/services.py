"""WhatsApp Cloud API client and customer message rendering."""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Mapping

import requests  # type: ignore
from django.conf import settings  # type: ignore

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


class NotificationError(Exception):
    """Message cannot be delivered; retrying will not help."""


class WhatsAppNotConfigured(NotificationError):
    pass


# ============================================================================
# PHONE NUMBERS
# ============================================================================

def format_phone_number(raw: str, country_code: str | None = None) -> str:
    """
    Normalize a customer contact to the international digits WhatsApp expects.

    Ten-digit local numbers get the default country code prepended.
    """
    country_code = country_code or settings.WHATSAPP_DEFAULT_COUNTRY_CODE
    digits = re.sub(r"\D", "", raw or "")
    if digits.startswith("00"):
        digits = digits[2:]
    if len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) == 10:
        digits = f"{country_code}{digits}"
    if not 11 <= len(digits) <= 15:
        raise NotificationError(f"Invalid phone number: {raw!r}")
    return digits


# ============================================================================
# MESSAGE RENDERING
# ============================================================================

def _rupees(value: Any) -> str:
    return f"₹{Decimal(str(value)):,.2f}"


def render_booking_completed(payload: Mapping[str, Any]) -> str:
    days = payload["duration_days"]
    lines = [
        "*RENTAL COMPLETED*",
        "",
        f"Hello {payload['customer_name'] or 'there'},",
        f"Booking ID: {payload['booking_code']}",
    ]
    if payload.get("vehicle_registration"):
        lines.append(f"Vehicle: {payload['vehicle_registration']}")
    lines += [
        f"Duration: {days} day{'s' if days != 1 else ''}",
        f"Booking amount: {_rupees(payload['booking_amount'])}",
        f"Additional charges: {_rupees(payload['additional_charges'])}",
        f"Total amount: {_rupees(payload['total_fare'])}",
        f"Paid: {_rupees(payload['paid_amount'])} ({payload['payment_method'].replace('_', ' ')})",
    ]
    if Decimal(str(payload["refund_amount"])) > 0:
        lines.append(f"Deposit refund: {_rupees(payload['refund_amount'])}")
    lines += ["", "Thank you for riding with us!"]
    return "\n".join(lines)


def render_booking_cancelled(payload: Mapping[str, Any]) -> str:
    lines = [
        "*BOOKING CANCELLED*",
        "",
        f"Hello {payload['customer_name'] or 'there'},",
        f"Your booking {payload['booking_code']} has been cancelled.",
    ]
    if payload.get("reason"):
        lines.append(f"Reason: {payload['reason']}")
    return "\n".join(lines)


def render_booking_extended(payload: Mapping[str, Any]) -> str:
    return "\n".join([
        "*BOOKING EXTENDED*",
        "",
        f"Hello {payload['customer_name'] or 'there'},",
        f"Booking ID: {payload['booking_code']}",
        f"New return: {payload['new_end_date']} {payload['new_dropoff_time'][:5]}",
        f"Additional amount: {_rupees(payload['additional_amount'])}",
        f"Updated booking amount: {_rupees(payload['booking_amount'])}",
    ])


RENDERERS = {
    "BookingCompleted": render_booking_completed,
    "BookingCancelled": render_booking_cancelled,
    "BookingExtended": render_booking_extended,
}


def render_message(payload: Mapping[str, Any]) -> str:
    try:
        renderer = RENDERERS[payload["event_type"]]
    except KeyError:
        raise NotificationError(f"No message template for {payload.get('event_type')}")
    return renderer(payload)


# ============================================================================
# DELIVERY
# ============================================================================

def send_whatsapp_message(phone_number: str, text: str) -> dict:
    """
    Send a text message through the WhatsApp Cloud API.

    Raises ``requests.RequestException`` on transport or HTTP errors so the
    calling task can retry, and ``NotificationError`` when the client is
    not configured.
    """
    token = settings.WHATSAPP_ACCESS_TOKEN
    phone_number_id = settings.WHATSAPP_PHONE_NUMBER_ID
    if not token or not phone_number_id:
        raise WhatsAppNotConfigured("WhatsApp credentials are not configured")

    url = f"https://graph.facebook.com/{settings.WHATSAPP_API_VERSION}/{phone_number_id}/messages"
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }
    payload = {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": phone_number,
        "type": "text",
        "text": {"preview_url": False, "body": text},
    }

    response = requests.post(url, headers=headers, json=payload, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()

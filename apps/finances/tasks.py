"""Celery tasks for the finance domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import reconcile_payments as run_reconciliation

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="finances.reconcile_payments")
def reconcile_payments() -> dict[str, int]:
    """
    Backfill ledger entries for bookings paid before the ledger existed.

    Idempotent: a second run over unchanged data creates nothing.

    Returns:
        dict: {"created": number of synthesized entries}
    """
    result = run_reconciliation()
    if result["created"]:
        logger.info("Payment reconciliation created %s entries", result["created"])
    return result

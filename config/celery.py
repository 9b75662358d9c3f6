import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("rentflow")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

RECONCILE_EVERY_MINUTES = int(os.environ.get("RECONCILE_PAYMENTS_SCHEDULE_MINUTES", 60))


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Ledger backfill for bookings with a paid amount but no entries
    "reconcile-payments": {
        "task": "finances.reconcile_payments",
        "schedule": RECONCILE_EVERY_MINUTES * 60.0,
        "options": {"expires": RECONCILE_EVERY_MINUTES * 60 - 10},
    },
    # Nightly pass in case periodic runs were paused
    "reconcile-payments-nightly": {
        "task": "finances.reconcile_payments",
        "schedule": crontab(hour=2, minute=30),
    },
}

app.conf.timezone = "Asia/Kolkata"

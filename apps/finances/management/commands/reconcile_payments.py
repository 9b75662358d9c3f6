from django.core.management.base import BaseCommand

from apps.finances.services import reconcile_payments


class Command(BaseCommand):
    help = "Create missing ledger entries for bookings with a paid amount"

    def handle(self, *args, **options):
        result = reconcile_payments()
        created = result["created"]

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created {created} payment entries"))
        else:
            self.stdout.write("Ledger already consistent, nothing to create")

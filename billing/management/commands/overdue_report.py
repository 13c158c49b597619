from django.conf import settings
from django.core.management.base import BaseCommand

from billing.services import list_overdue_payments
from clients.services import expiring_soon


class Command(BaseCommand):
    help = "Print overdue installments and memberships expiring soon"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Expiring-soon window in days (default: GYM_EXPIRING_SOON_DAYS)",
        )

    def handle(self, *args, **options):
        overdue = list(list_overdue_payments())
        self.stdout.write(f"Overdue installments: {len(overdue)}")
        for it in overdue:
            client = it.plan.client
            self.stdout.write(
                f"  {client.human_code} {client.full_name}: "
                f"{it.plan.membership.name} {it.sequence}/{it.plan.installment_count} "
                f"{it.amount} due {it.due_date:%d.%m.%Y}"
            )

        days = options["days"]
        if days is None:
            days = int(getattr(settings, "GYM_EXPIRING_SOON_DAYS", 5))
        soon = list(expiring_soon(within_days=days))
        self.stdout.write(f"Memberships expiring within {days} day(s): {len(soon)}")
        for client in soon:
            self.stdout.write(
                f"  {client.human_code} {client.full_name}: {client.membership_expiry_date:%d.%m.%Y}"
            )

        self.stdout.write(self.style.SUCCESS("Report done"))

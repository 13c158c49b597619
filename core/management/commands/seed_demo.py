from decimal import Decimal

from django.core.management.base import BaseCommand

from memberships.models import MembershipPlan


DEMO_PLANS = [
    ("Monthly", Decimal("100.00"), 30, False, 1),
    ("Quarterly", Decimal("270.00"), 90, False, 1),
    ("Annual", Decimal("950.00"), 365, False, 1),
    ("Monthly 2x1", Decimal("150.00"), 30, True, 2),
]


class Command(BaseCommand):
    help = "Seed demo membership plans (safe to re-run)"

    def handle(self, *args, **options):
        for name, cost, days, promo, beneficiaries in DEMO_PLANS:
            MembershipPlan.objects.get_or_create(
                name=name,
                defaults={
                    "cost": cost,
                    "duration_days": days,
                    "is_promotion": promo,
                    "beneficiaries_count": beneficiaries,
                },
            )

        self.stdout.write(self.style.SUCCESS("Demo data ensured"))

from datetime import date
from decimal import Decimal

from django.test import TestCase

from billing.models import Installment, InstallmentPlan
from billing.services import create_installment_plan
from clients.models import Client
from memberships.models import MembershipPlan


class MembershipPlanDeletionTests(TestCase):
    def setUp(self):
        self.today = date(2025, 5, 10)
        self.plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Ana", last_name="Quispe")
        self.member.set_membership_window(self.plan, self.today, date(2025, 6, 9), self.today)
        self.member.save()

    def test_deleting_plan_detaches_clients_and_rederives_status(self):
        self.assertEqual(self.member.status, Client.Status.ACTIVE)

        self.plan.delete()

        self.member.refresh_from_db()
        self.assertIsNone(self.member.active_membership_id)
        self.assertEqual(self.member.status, Client.Status.INACTIVE)
        # dates are history, kept as they were
        self.assertEqual(self.member.membership_expiry_date, date(2025, 6, 9))

    def test_deleting_plan_cascades_installment_plans(self):
        create_installment_plan(self.member.pk, self.plan.pk, 3, now=self.today)
        self.assertEqual(InstallmentPlan.objects.count(), 1)

        self.plan.delete()

        self.assertEqual(InstallmentPlan.objects.count(), 0)
        self.assertEqual(Installment.objects.count(), 0)

    def test_extra_beneficiaries_only_for_promotions(self):
        promo = MembershipPlan(name="2x1", cost=Decimal("150.00"), duration_days=30, is_promotion=True, beneficiaries_count=2)
        plain = MembershipPlan(name="Solo", cost=Decimal("100.00"), duration_days=30, beneficiaries_count=3)
        self.assertEqual(promo.extra_beneficiaries, 1)
        self.assertEqual(plain.extra_beneficiaries, 0)

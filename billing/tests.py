import json
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from billing.models import Installment, InstallmentPlan, Transaction
from billing.receipt import build_receipt
from billing.services import (
    build_schedule,
    create_installment_plan,
    list_overdue_payments,
    list_transactions,
    mark_installment_paid,
)
from clients.models import Client
from clients.services import renew_membership
from clients.status import derive_status
from core.exceptions import InvalidState, NotFound
from memberships.models import MembershipPlan


class ScheduleTests(TestCase):
    def test_even_split_keeps_rounded_amount_on_every_installment(self):
        total, per, dues = build_schedule(Decimal("100.00"), 3, Decimal("0"), date(2025, 1, 15))

        self.assertEqual(total, Decimal("100.00"))
        self.assertEqual(per, Decimal("33.33"))
        self.assertLessEqual(abs(per * 3 - total), Decimal("0.01"))
        self.assertEqual([seq for seq, _ in dues], [1, 2, 3])

    def test_interest_inflates_total_before_split(self):
        total, per, _ = build_schedule(Decimal("100.00"), 4, Decimal("0.05"), date(2025, 1, 15))

        self.assertEqual(total, Decimal("105.00"))
        self.assertEqual(per, Decimal("26.25"))

    def test_half_cent_rounds_up(self):
        _, per, _ = build_schedule(Decimal("0.05"), 2, Decimal("0"), date(2025, 1, 15))
        self.assertEqual(per, Decimal("0.03"))

    def test_due_dates_are_monthly_from_creation_day_clamped(self):
        _, _, dues = build_schedule(Decimal("90.00"), 3, Decimal("0"), date(2025, 1, 31))

        self.assertEqual(
            [due for _, due in dues],
            [date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)],
        )


class InstallmentPlanTests(TestCase):
    def setUp(self):
        self.now = date(2025, 1, 15)
        self.plan = MembershipPlan.objects.create(name="Quarterly", cost=Decimal("100.00"), duration_days=90)
        self.member = Client.objects.create(human_code="1001", first_name="Pedro", last_name="Salas")

    def test_create_plan_generates_children(self):
        plan = create_installment_plan(self.member.pk, self.plan.pk, 3, Decimal("0"), now=self.now)

        self.assertEqual(plan.status, InstallmentPlan.Status.ACTIVE)
        self.assertEqual(plan.total_amount, Decimal("100.00"))
        self.assertEqual(plan.installment_amount, Decimal("33.33"))

        installments = list(plan.installments.order_by("sequence"))
        self.assertEqual([it.sequence for it in installments], [1, 2, 3])
        self.assertEqual([it.amount for it in installments], [Decimal("33.33")] * 3)
        self.assertEqual(
            [it.due_date for it in installments],
            [date(2025, 2, 15), date(2025, 3, 15), date(2025, 4, 15)],
        )
        self.assertTrue(all(it.status == Installment.Status.PENDING for it in installments))

    def test_create_plan_grants_nothing_and_books_nothing(self):
        create_installment_plan(self.member.pk, self.plan.pk, 3, now=self.now)

        self.member.refresh_from_db()
        self.assertEqual(self.member.status, Client.Status.INACTIVE)
        self.assertIsNone(self.member.active_membership_id)
        self.assertEqual(Transaction.objects.count(), 0)

    def test_single_installment_is_invalid(self):
        with self.assertRaises(InvalidState):
            create_installment_plan(self.member.pk, self.plan.pk, 1, now=self.now)
        self.assertFalse(InstallmentPlan.objects.exists())

    def test_negative_interest_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_installment_plan(self.member.pk, self.plan.pk, 3, Decimal("-0.10"), now=self.now)

    def test_unknown_client_raises_not_found(self):
        with self.assertRaises(NotFound):
            create_installment_plan(999999, self.plan.pk, 3, now=self.now)

    def test_stored_rate_is_the_rate_charged(self):
        plan = create_installment_plan(self.member.pk, self.plan.pk, 2, "0.1234", now=self.now)
        plan.refresh_from_db()

        self.assertEqual(plan.interest_rate, Decimal("0.1234"))
        self.assertEqual(plan.total_amount, Decimal("112.34"))

    def test_rate_the_column_cannot_hold_is_rejected(self):
        for bad in ("0.12345", "100", "5%", "NaN", "Infinity"):
            with self.subTest(rate=bad):
                with self.assertRaises(ValidationError):
                    create_installment_plan(self.member.pk, self.plan.pk, 3, bad, now=self.now)
        self.assertFalse(InstallmentPlan.objects.exists())


class SettlementTests(TestCase):
    def setUp(self):
        self.now = date(2025, 1, 15)
        self.membership = MembershipPlan.objects.create(name="Quarterly", cost=Decimal("300.00"), duration_days=90)
        self.member = Client.objects.create(human_code="1001", first_name="Pedro", last_name="Salas")
        self.plan = create_installment_plan(
            self.member.pk, self.membership.pk, 3, Decimal("0.05"), now=self.now
        )
        self.installments = list(self.plan.installments.order_by("sequence"))

    def test_first_payment_activates_client_and_books_transaction(self):
        first = self.installments[0]

        result = mark_installment_paid(first.pk, "cash", "front desk", now=self.now)

        first.refresh_from_db()
        self.assertEqual(first.status, Installment.Status.PAID)
        self.assertEqual(first.paid_date, self.now)
        self.assertEqual(first.payment_method, "cash")
        self.assertEqual(first.note, "front desk")

        tx = result.transaction
        self.assertEqual(tx.type, Transaction.Type.INSTALLMENT_PAYMENT)
        self.assertEqual(tx.amount, Decimal("105.00"))
        self.assertEqual(tx.item_description, "Quarterly - Cuota 1/3")
        self.assertEqual(tx.installment_id, first.pk)
        self.assertTrue(tx.is_membership_related)

        self.member.refresh_from_db()
        self.assertEqual(self.member.status, Client.Status.ACTIVE)
        self.assertEqual(self.member.active_membership_id, self.membership.pk)
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=90))
        self.assertEqual(
            self.member.status,
            derive_status(self.member.active_membership_id, self.member.membership_expiry_date, self.now),
        )

    def test_progress_carries_receipt_figures(self):
        result = mark_installment_paid(self.installments[0].pk, "card", now=self.now)

        progress = result.progress
        self.assertEqual(progress.current_index, 1)
        self.assertEqual(progress.total_count, 3)
        self.assertEqual(progress.paid_count, 1)
        self.assertEqual(progress.installment_amount, Decimal("105.00"))
        self.assertEqual(progress.plan_total, Decimal("315.00"))
        self.assertEqual(progress.interest_rate, Decimal("0.0500"))
        self.assertFalse(progress.completed)

        receipt = build_receipt(result.transaction, progress)
        self.assertEqual(receipt["installment"]["current_index"], 1)
        self.assertEqual(receipt["amount_in_words"], "SON: 105 CON 00/100 SOLES")
        self.assertEqual(receipt["client"]["code"], "1001")

    def test_second_of_three_keeps_plan_active(self):
        mark_installment_paid(self.installments[0].pk, "cash", now=self.now)
        result = mark_installment_paid(self.installments[1].pk, "cash", now=date(2025, 2, 15))

        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, InstallmentPlan.Status.ACTIVE)
        self.assertFalse(result.progress.completed)

    def test_last_payment_completes_plan(self):
        for it in self.installments:
            result = mark_installment_paid(it.pk, "transfer", now=self.now)

        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, InstallmentPlan.Status.COMPLETED)
        self.assertTrue(result.progress.completed)
        self.assertEqual(result.progress.paid_count, 3)

    def test_out_of_order_payment_completes_only_when_all_paid(self):
        mark_installment_paid(self.installments[2].pk, "cash", now=self.now)
        mark_installment_paid(self.installments[0].pk, "cash", now=self.now)
        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, InstallmentPlan.Status.ACTIVE)

        mark_installment_paid(self.installments[1].pk, "cash", now=self.now)
        self.plan.refresh_from_db()
        self.assertEqual(self.plan.status, InstallmentPlan.Status.COMPLETED)

    def test_later_payments_do_not_extend_running_window(self):
        mark_installment_paid(self.installments[0].pk, "cash", now=self.now)
        mark_installment_paid(self.installments[1].pk, "cash", now=date(2025, 2, 15))

        self.member.refresh_from_db()
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=90))

    def test_payment_after_lapse_reopens_access(self):
        mark_installment_paid(self.installments[0].pk, "cash", now=self.now)
        late = self.now + timedelta(days=120)

        mark_installment_paid(self.installments[1].pk, "cash", now=late)

        self.member.refresh_from_db()
        self.assertEqual(self.member.status, Client.Status.ACTIVE)
        self.assertEqual(self.member.membership_start_date, late)
        self.assertEqual(self.member.membership_expiry_date, late + timedelta(days=90))

    def test_paying_twice_fails_without_double_charge(self):
        first = self.installments[0]
        mark_installment_paid(first.pk, "cash", now=self.now)

        with self.assertRaises(InvalidState):
            mark_installment_paid(first.pk, "cash", now=self.now)

        self.assertEqual(Transaction.objects.filter(installment=first).count(), 1)

    def test_unknown_payment_method_is_rejected(self):
        with self.assertRaises(ValidationError):
            mark_installment_paid(self.installments[0].pk, "bitcoin", now=self.now)

        self.installments[0].refresh_from_db()
        self.assertEqual(self.installments[0].status, Installment.Status.PENDING)

    def test_unknown_installment_raises_not_found(self):
        with self.assertRaises(NotFound):
            mark_installment_paid(999999, "cash", now=self.now)

    def test_transactions_are_immutable(self):
        tx = mark_installment_paid(self.installments[0].pk, "cash", now=self.now).transaction
        tx.amount = Decimal("1.00")

        with self.assertRaises(InvalidState):
            tx.save()


class OverdueTests(TestCase):
    def setUp(self):
        self.membership = MembershipPlan.objects.create(name="Monthly", cost=Decimal("90.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Lucia")
        self.plan = create_installment_plan(self.member.pk, self.membership.pk, 3, now=date(2025, 1, 10))
        self.first = self.plan.installments.get(sequence=1)  # due 2025-02-10

    def test_pending_installment_past_due_is_overdue(self):
        overdue = list(list_overdue_payments(now=date(2025, 2, 11)))

        self.assertEqual(overdue, [self.first])
        self.assertTrue(self.first.is_overdue(date(2025, 2, 11)))
        # derived view only
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, Installment.Status.PENDING)

    def test_due_today_is_not_overdue(self):
        self.assertEqual(list(list_overdue_payments(now=date(2025, 2, 10))), [])

    def test_paid_installment_is_never_overdue(self):
        mark_installment_paid(self.first.pk, "cash", now=date(2025, 1, 10))

        self.assertEqual(list(list_overdue_payments(now=date(2025, 2, 11))), [])
        self.assertEqual(len(list_overdue_payments(now=date(2025, 6, 1))), 2)


class BillingApiTests(TestCase):
    def setUp(self):
        self.staff = get_user_model().objects.create_user(username="desk", password="pass12345", is_staff=True)
        self.membership = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Rosa")
        self.client.force_login(self.staff)

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_create_pay_and_repay_flow(self):
        response = self._post(
            reverse("billing:create_plan"),
            {
                "client_id": self.member.pk,
                "plan_id": self.membership.pk,
                "installment_count": 3,
                "interest_rate": "0",
            },
        )
        self.assertEqual(response.status_code, 201)
        installments = response.json()["plan"]["installments"]
        self.assertEqual([it["amount"] for it in installments], ["33.33"] * 3)

        pay_url = reverse("billing:pay_installment", args=[installments[0]["id"]])
        response = self._post(pay_url, {"payment_method": "cash", "note": "first"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["installment"]["status"], "paid")
        self.assertEqual(body["transaction"]["installment"]["total_count"], 3)

        response = self._post(pay_url, {"payment_method": "cash"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "invalid_state")

    def test_single_installment_plan_is_409(self):
        response = self._post(
            reverse("billing:create_plan"),
            {"client_id": self.member.pk, "plan_id": self.membership.pk, "installment_count": 1},
        )
        self.assertEqual(response.status_code, 409)

    def test_bad_json_is_400(self):
        response = self.client.post(reverse("billing:create_plan"), data="{oops", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "bad_json")

    def test_overdue_lists_pending_past_due(self):
        long_ago = timezone.localdate() - timedelta(days=100)
        create_installment_plan(self.member.pk, self.membership.pk, 2, now=long_ago)

        response = self.client.get(reverse("billing:overdue"))

        self.assertEqual(response.status_code, 200)
        rows = response.json()["installments"]
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["client_code"], "1001")
        self.assertEqual(rows[0]["sequence"], 1)

    def test_unparseable_interest_rate_is_400(self):
        for bad in ("5%", "NaN", "Infinity", "0.12345"):
            with self.subTest(rate=bad):
                response = self._post(
                    reverse("billing:create_plan"),
                    {
                        "client_id": self.member.pk,
                        "plan_id": self.membership.pk,
                        "installment_count": 3,
                        "interest_rate": bad,
                    },
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["error"], "validation")
        self.assertFalse(InstallmentPlan.objects.exists())

    def test_transactions_listing_with_income_total(self):
        other = Client.objects.create(human_code="1002", first_name="Hugo")
        renew_membership(self.member.pk, self.membership.pk)
        renew_membership(other.pk, self.membership.pk)

        response = self.client.get(reverse("billing:transactions"))
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["total"], "200.00")
        self.assertEqual(len(body["transactions"]), 2)

        response = self.client.get(reverse("billing:transactions"), {"client_id": other.pk})
        rows = response.json()["transactions"]
        self.assertEqual([row["client_name"] for row in rows], ["Hugo"])

        response = self.client.get(reverse("billing:transactions"), {"type": "bogus"})
        self.assertEqual(response.status_code, 400)


class TransactionListTests(TestCase):
    def setUp(self):
        self.membership = MembershipPlan.objects.create(name="Monthly", cost=Decimal("90.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Lucia")

    def test_newest_first_filtered_by_type(self):
        plan = create_installment_plan(self.member.pk, self.membership.pk, 2, now=date(2025, 1, 10))
        first, second = plan.installments.order_by("sequence")
        renewal = renew_membership(self.member.pk, self.membership.pk, now=date(2025, 1, 10)).transaction
        paid_first = mark_installment_paid(first.pk, "cash", now=date(2025, 1, 10)).transaction
        paid_second = mark_installment_paid(second.pk, "cash", now=date(2025, 2, 10)).transaction

        rows, total = list_transactions()
        self.assertEqual(rows, [paid_second, paid_first, renewal])
        self.assertEqual(total, Decimal("180.00"))

        rows, total = list_transactions(tx_type=Transaction.Type.INSTALLMENT_PAYMENT, limit=1)
        self.assertEqual(rows, [paid_second])
        self.assertEqual(total, Decimal("90.00"))

    def test_empty_ledger_totals_zero(self):
        self.assertEqual(list_transactions(), ([], Decimal("0.00")))

    def test_non_positive_limit_is_rejected(self):
        with self.assertRaises(ValidationError):
            list_transactions(limit=0)

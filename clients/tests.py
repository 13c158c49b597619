import json
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from billing.models import Transaction
from clients.models import Client, Measurement
from clients.services import (
    add_measurement,
    expiring_soon,
    refresh_statuses,
    register_client,
    renew_membership,
    renewal_window,
)
from clients.status import derive_status
from core.exceptions import NotFound
from memberships.models import MembershipPlan


class DeriveStatusTests(TestCase):
    def setUp(self):
        self.now = date(2025, 3, 1)

    def test_without_plan_or_expiry_is_inactive(self):
        self.assertEqual(derive_status(None, date(2025, 4, 1), self.now), Client.Status.INACTIVE)
        self.assertEqual(derive_status(5, None, self.now), Client.Status.INACTIVE)

    def test_expiry_today_or_later_is_active(self):
        self.assertEqual(derive_status(5, self.now, self.now), Client.Status.ACTIVE)
        self.assertEqual(derive_status(5, date(2025, 3, 2), self.now), Client.Status.ACTIVE)

    def test_expiry_in_past_is_expired(self):
        self.assertEqual(derive_status(5, date(2025, 2, 28), self.now), Client.Status.EXPIRED)

    def test_time_of_day_is_ignored(self):
        late_evening = timezone.make_aware(datetime(2025, 3, 1, 23, 30))
        self.assertEqual(derive_status(5, date(2025, 3, 1), late_evening), Client.Status.ACTIVE)


class RenewalTests(TestCase):
    def setUp(self):
        self.now = date(2025, 3, 1)
        self.monthly = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        self.quarterly = MembershipPlan.objects.create(name="Quarterly", cost=Decimal("270.00"), duration_days=90)
        self.member = Client.objects.create(human_code="1001", first_name="Luis", last_name="Rojas")

    def _give_window(self, plan, start, expiry):
        self.member.set_membership_window(plan, start, expiry, self.now)
        self.member.save()

    def _assert_status_consistent(self, client):
        self.assertEqual(
            client.status,
            derive_status(client.active_membership_id, client.membership_expiry_date, self.now),
        )

    def test_early_renewal_stacks_on_remaining_days(self):
        self._give_window(self.monthly, date(2025, 2, 9), self.now + timedelta(days=10))

        result = renew_membership(self.member.pk, self.monthly.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertEqual(self.member.membership_start_date, self.now + timedelta(days=10))
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=40))
        self.assertEqual(self.member.status, Client.Status.ACTIVE)
        self.assertTrue(result.window.is_renewal_of_same_plan)
        self.assertEqual(result.transaction.type, Transaction.Type.MEMBERSHIP_RENEWAL)
        self._assert_status_consistent(self.member)

    def test_renewal_of_expired_client_starts_today(self):
        self._give_window(self.monthly, date(2025, 1, 1), date(2025, 1, 31))
        self.assertEqual(self.member.status, Client.Status.EXPIRED)

        renew_membership(self.member.pk, self.monthly.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertEqual(self.member.membership_start_date, self.now)
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=30))
        self.assertEqual(self.member.status, Client.Status.ACTIVE)

    def test_renewal_of_inactive_client_starts_today(self):
        result = renew_membership(self.member.pk, self.quarterly.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=90))
        self.assertEqual(self.member.active_membership_id, self.quarterly.pk)
        self.assertEqual(result.transaction.type, Transaction.Type.MEMBERSHIP_NEW)
        self._assert_status_consistent(self.member)

    def test_expiry_today_is_not_stacked(self):
        self._give_window(self.monthly, date(2025, 1, 30), self.now)

        window = renewal_window(self.member, self.monthly, self.now)

        self.assertEqual(window.start_date, self.now)
        self.assertEqual(window.expiry_date, date(2025, 3, 31))

    def test_switching_plan_is_booked_as_new_membership(self):
        self._give_window(self.monthly, date(2025, 2, 20), date(2025, 3, 22))

        result = renew_membership(self.member.pk, self.quarterly.pk, now=self.now)

        self.assertEqual(result.transaction.type, Transaction.Type.MEMBERSHIP_NEW)
        self.assertEqual(result.client.membership_expiry_date, date(2025, 3, 22) + timedelta(days=90))

    def test_renewal_books_exactly_one_full_price_transaction(self):
        renew_membership(self.member.pk, self.monthly.pk, now=self.now)

        txs = list(Transaction.objects.filter(client=self.member))
        self.assertEqual(len(txs), 1)
        self.assertEqual(txs[0].amount, Decimal("100.00"))
        self.assertEqual(txs[0].item_description, "Monthly")
        self.assertEqual(txs[0].client_name, "Luis Rojas")

    def test_promotion_names_extra_beneficiaries_on_transaction(self):
        promo = MembershipPlan.objects.create(
            name="Monthly 2x1",
            cost=Decimal("150.00"),
            duration_days=30,
            is_promotion=True,
            beneficiaries_count=3,
        )

        result = renew_membership(self.member.pk, promo.pk, now=self.now)

        self.assertEqual(result.transaction.client_name, "Luis Rojas (+ 2 more)")

    def test_unknown_client_or_plan_raises_not_found(self):
        with self.assertRaises(NotFound):
            renew_membership(999999, self.monthly.pk, now=self.now)
        with self.assertRaises(NotFound):
            renew_membership(self.member.pk, 999999, now=self.now)
        self.assertEqual(Transaction.objects.count(), 0)

    def test_free_plan_is_rejected_without_partial_write(self):
        free = MembershipPlan.objects.create(name="Free", cost=Decimal("0.00"), duration_days=7)

        with self.assertRaises(ValidationError):
            renew_membership(self.member.pk, free.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertIsNone(self.member.active_membership_id)
        self.assertEqual(self.member.status, Client.Status.INACTIVE)
        self.assertEqual(Transaction.objects.count(), 0)

    def test_failed_ledger_write_rolls_back_the_window(self):
        self._give_window(self.monthly, date(2025, 2, 9), self.now + timedelta(days=10))

        with mock.patch.object(Transaction.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(DatabaseError):
                renew_membership(self.member.pk, self.quarterly.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertEqual(self.member.active_membership_id, self.monthly.pk)
        self.assertEqual(self.member.membership_start_date, date(2025, 2, 9))
        self.assertEqual(self.member.membership_expiry_date, self.now + timedelta(days=10))
        self.assertEqual(self.member.status, Client.Status.ACTIVE)
        self.assertFalse(Transaction.objects.exists())

    def test_failed_ledger_write_leaves_inactive_client_inactive(self):
        with mock.patch.object(Transaction.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(DatabaseError):
                renew_membership(self.member.pk, self.monthly.pk, now=self.now)

        self.member.refresh_from_db()
        self.assertIsNone(self.member.active_membership_id)
        self.assertIsNone(self.member.membership_expiry_date)
        self.assertEqual(self.member.status, Client.Status.INACTIVE)

    def test_days_remaining_counts_from_today(self):
        self.assertIsNone(self.member.days_remaining(self.now))
        self._give_window(self.monthly, self.now, self.now + timedelta(days=5))
        self.assertEqual(self.member.days_remaining(self.now), 5)
        self.assertEqual(self.member.days_remaining(self.now + timedelta(days=7)), -2)


class RegistrationTests(TestCase):
    def setUp(self):
        self.plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)

    def test_human_codes_are_sequential_from_1001(self):
        first = register_client(first_name="Ana")
        second = register_client(first_name="Beto")

        self.assertEqual(first.human_code, "1001")
        self.assertEqual(second.human_code, "1002")
        self.assertEqual(first.status, Client.Status.INACTIVE)

    def test_code_follows_highest_existing_code(self):
        Client.objects.create(human_code="1500", first_name="Old")
        Client.objects.create(human_code="guest", first_name="Guest")

        self.assertEqual(register_client(first_name="New").human_code, "1501")

    def test_register_with_initial_plan_activates_client(self):
        today = timezone.localdate()

        client = register_client(first_name="Carla", last_name="Diaz", plan_id=self.plan.pk)

        self.assertEqual(client.status, Client.Status.ACTIVE)
        self.assertEqual(client.membership_expiry_date, today + timedelta(days=30))
        self.assertEqual(
            Transaction.objects.get(client=client).type,
            Transaction.Type.MEMBERSHIP_NEW,
        )

    def test_first_name_is_required(self):
        with self.assertRaises(ValidationError):
            register_client(first_name="  ")
        self.assertFalse(Client.objects.exists())


class StatusRefreshTests(TestCase):
    def setUp(self):
        self.plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)

    def _client(self, code, expiry, now):
        client = Client.objects.create(human_code=code, first_name=f"C{code}")
        client.set_membership_window(self.plan, expiry - timedelta(days=30), expiry, now)
        client.save()
        return client

    def test_refresh_marks_lapsed_clients_expired(self):
        yesterday = date(2025, 4, 30)
        lapsing = self._client("1001", date(2025, 5, 1), yesterday)
        running = self._client("1002", date(2025, 6, 1), yesterday)

        changed = refresh_statuses(now=date(2025, 5, 2))

        self.assertEqual(changed, 1)
        lapsing.refresh_from_db()
        running.refresh_from_db()
        self.assertEqual(lapsing.status, Client.Status.EXPIRED)
        self.assertEqual(running.status, Client.Status.ACTIVE)

    def test_expiring_soon_lists_window_ending_within_days(self):
        now = date(2025, 5, 1)
        soon = self._client("1001", date(2025, 5, 4), now)
        self._client("1002", date(2025, 5, 20), now)
        self._client("1003", date(2025, 4, 20), now)

        self.assertEqual(list(expiring_soon(now=now, within_days=5)), [soon])


@override_settings(TELEGRAM_NOTIFICATIONS=False)
class ClientApiTests(TestCase):
    def setUp(self):
        self.staff = get_user_model().objects.create_user(username="desk", password="pass12345", is_staff=True)
        self.plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Rosa", last_name="Huaman")

    def _post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_renew_returns_client_and_receipt(self):
        self.client.force_login(self.staff)

        response = self._post(reverse("clients:renew", args=[self.member.pk]), {"plan_id": self.plan.pk})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["client"]["status"], "active")
        self.assertEqual(body["transaction"]["amount"], "100.00")
        self.assertEqual(body["transaction"]["amount_in_words"], "SON: 100 CON 00/100 SOLES")

    def test_renew_unknown_plan_is_404(self):
        self.client.force_login(self.staff)

        response = self._post(reverse("clients:renew", args=[self.member.pk]), {"plan_id": 424242})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")

    def test_register_requires_first_name(self):
        self.client.force_login(self.staff)

        response = self._post(reverse("clients:register"), {"last_name": "X"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "missing_fields")

    def test_register_assigns_next_code(self):
        self.client.force_login(self.staff)

        response = self._post(reverse("clients:register"), {"first_name": "Mario"})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["client"]["human_code"], "1002")

    def test_anonymous_is_redirected_to_login(self):
        response = self._post(reverse("clients:renew", args=[self.member.pk]), {"plan_id": self.plan.pk})
        self.assertEqual(response.status_code, 302)


class MeasurementTests(TestCase):
    def setUp(self):
        self.staff = get_user_model().objects.create_user(username="desk", password="pass12345", is_staff=True)
        self.member = Client.objects.create(human_code="1001", first_name="Rosa")

    def test_add_measurement_stores_optional_fields(self):
        m = add_measurement(self.member.pk, weight="72.45", waist=81, notes=" after holidays ")

        self.assertEqual(m.weight, Decimal("72.45"))
        self.assertEqual(m.waist, Decimal("81.00"))
        self.assertIsNone(m.height)
        self.assertEqual(m.notes, "after holidays")
        self.assertEqual(list(self.member.measurements.all()), [m])

    def test_weight_is_required_and_positive(self):
        for bad in (None, "", "0", "-3", "heavy", "NaN", "10000"):
            with self.subTest(weight=bad):
                with self.assertRaises(ValidationError):
                    add_measurement(self.member.pk, weight=bad)
        self.assertFalse(Measurement.objects.exists())

    def test_unknown_client_raises_not_found(self):
        with self.assertRaises(NotFound):
            add_measurement(999999, weight="70")

    def test_api_adds_and_lists_measurements(self):
        self.client.force_login(self.staff)
        url = reverse("clients:measurements", args=[self.member.pk])

        response = self.client.post(
            url,
            data=json.dumps({"weight": 70.5, "height": 172, "arm": "abc"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            url,
            data=json.dumps({"weight": 70.5, "height": 172}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["measurement"]["weight"], "70.50")

        response = self.client.get(url)
        rows = response.json()["measurements"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["height"], "172.00")
        self.assertIsNone(rows[0]["chest"])

    def test_api_unknown_client_is_404(self):
        self.client.force_login(self.staff)

        response = self.client.get(reverse("clients:measurements", args=[424242]))

        self.assertEqual(response.status_code, 404)

import json
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from attendance.models import AttendanceLog
from attendance.services import check_in, recent_logs
from clients.models import Client
from memberships.models import MembershipPlan


@override_settings(GYM_CHECKIN_WARNING_DAYS=3)
class CheckInTests(TestCase):
    def setUp(self):
        self.today = date(2025, 6, 10)
        self.plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        self.member = Client.objects.create(human_code="1001", first_name="Elena", last_name="Paz")

    def _expiring_on(self, expiry):
        self.member.set_membership_window(self.plan, expiry - timedelta(days=30), expiry, self.today)
        self.member.save()

    def test_unknown_code_is_denied_and_logged_without_client(self):
        result = check_in("9999", now=self.today)

        self.assertFalse(result.granted)
        self.assertEqual(result.message, "code not found")
        self.assertIsNone(result.client)

        log = AttendanceLog.objects.get()
        self.assertIsNone(log.client_id)
        self.assertEqual(log.client_name, "Unknown")
        self.assertFalse(log.success)

    def test_client_without_membership_is_denied(self):
        result = check_in("1001", now=self.today)

        self.assertFalse(result.granted)
        self.assertEqual(result.message, "no active membership")
        self.assertEqual(AttendanceLog.objects.get().client_id, self.member.pk)

    def test_expired_yesterday_is_denied(self):
        self._expiring_on(self.today - timedelta(days=1))

        result = check_in("1001", now=self.today)

        self.assertFalse(result.granted)
        self.assertFalse(result.warning)
        self.assertEqual(result.message, "membership expired")

    def test_expiry_today_is_granted_with_warning(self):
        self._expiring_on(self.today)

        result = check_in("1001", now=self.today)

        self.assertTrue(result.granted)
        self.assertTrue(result.warning)
        self.assertEqual(result.message, "access granted, membership expires in 0 day(s)")

    def test_warning_boundary(self):
        self._expiring_on(self.today + timedelta(days=3))
        at_threshold = check_in("1001", now=self.today)

        self._expiring_on(self.today + timedelta(days=4))
        past_threshold = check_in("1001", now=self.today)

        self.assertTrue(at_threshold.warning)
        self.assertEqual(at_threshold.message, "access granted, membership expires in 3 day(s)")
        self.assertTrue(past_threshold.granted)
        self.assertFalse(past_threshold.warning)
        self.assertEqual(past_threshold.message, "access granted")

    @override_settings(GYM_CHECKIN_WARNING_DAYS=7)
    def test_threshold_comes_from_settings(self):
        self._expiring_on(self.today + timedelta(days=6))

        self.assertTrue(check_in("1001", now=self.today).warning)

    def test_code_is_matched_case_insensitively_and_trimmed(self):
        Client.objects.create(human_code="VIP7", first_name="Guest")

        result = check_in("  vip7 ", now=self.today)

        self.assertEqual(result.client.human_code, "VIP7")
        self.assertEqual(result.message, "no active membership")

    def test_blank_code_is_denied(self):
        self.assertEqual(check_in("", now=self.today).message, "code not found")
        self.assertEqual(AttendanceLog.objects.count(), 1)

    def test_every_attempt_leaves_one_log(self):
        self._expiring_on(self.today + timedelta(days=20))
        moment = timezone.make_aware(datetime(2025, 6, 10, 7, 45))

        check_in("1001", now=moment)
        check_in("1001", now=moment)
        check_in("0000", now=moment)

        self.assertEqual(AttendanceLog.objects.count(), 3)
        self.assertEqual(AttendanceLog.objects.filter(success=True).count(), 2)
        self.assertTrue(all(log.created_at == moment for log in AttendanceLog.objects.all()))

    def test_check_in_does_not_touch_client(self):
        self._expiring_on(self.today - timedelta(days=5))
        before = Client.objects.get(pk=self.member.pk)

        check_in("1001", now=self.today)

        after = Client.objects.get(pk=self.member.pk)
        self.assertEqual(after.status, before.status)
        self.assertEqual(after.membership_expiry_date, before.membership_expiry_date)

    def test_failed_log_write_is_raised(self):
        self._expiring_on(self.today + timedelta(days=20))

        with mock.patch.object(AttendanceLog.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(DatabaseError):
                check_in("1001", now=self.today)

        self.assertFalse(AttendanceLog.objects.exists())

    def test_recent_logs_newest_first(self):
        first = check_in("1001", now=timezone.make_aware(datetime(2025, 6, 10, 7, 0))).log
        second = check_in("1001", now=timezone.make_aware(datetime(2025, 6, 10, 8, 0))).log

        self.assertEqual(list(recent_logs(limit=10)), [second, first])
        self.assertEqual(list(recent_logs(limit=1)), [second])


class AttendanceApiTests(TestCase):
    def setUp(self):
        self.staff = get_user_model().objects.create_user(username="desk", password="pass12345", is_staff=True)
        plan = MembershipPlan.objects.create(name="Monthly", cost=Decimal("100.00"), duration_days=30)
        today = timezone.localdate()
        self.member = Client.objects.create(human_code="1001", first_name="Elena")
        self.member.set_membership_window(plan, today, today + timedelta(days=30), today)
        self.member.save()
        self.client.force_login(self.staff)

    def _post(self, payload):
        return self.client.post(reverse("attendance:check_in"), data=json.dumps(payload), content_type="application/json")

    def test_granted_check_in(self):
        response = self._post({"code": "1001"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["granted"])
        self.assertFalse(body["warning"])
        self.assertEqual(body["client"]["human_code"], "1001")

    def test_unknown_code_is_a_denial_not_an_error(self):
        response = self._post({"code": "9999"})

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["granted"])
        self.assertIsNone(response.json()["client"])

    def test_missing_code_is_400(self):
        response = self._post({})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(AttendanceLog.objects.exists())

    def test_logs_listing(self):
        self._post({"code": "1001"})
        self._post({"code": "9999"})

        response = self.client.get(reverse("attendance:logs"))

        rows = response.json()["logs"]
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["client_name"], "Unknown")

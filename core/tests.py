from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from core.dates import add_days, add_months, days_between
from core.money import amount_in_words, money, rate


class MoneyTests(SimpleTestCase):
    def test_money_rounds_half_up_to_cents(self):
        self.assertEqual(money("33.335"), Decimal("33.34"))
        self.assertEqual(money(Decimal("100") / 3), Decimal("33.33"))
        self.assertEqual(money(None), Decimal("0.00"))

    def test_amount_in_words_keeps_cents(self):
        self.assertEqual(amount_in_words(Decimal("105.5")), "SON: 105 CON 50/100 SOLES")
        self.assertEqual(amount_in_words(Decimal("33.33"), "DOLARES"), "SON: 33 CON 33/100 DOLARES")

    def test_rate_parses_fractions_and_blank(self):
        self.assertEqual(rate("0.05"), Decimal("0.05"))
        self.assertEqual(rate(" 0.1 "), Decimal("0.1"))
        self.assertEqual(rate(""), Decimal("0"))
        self.assertEqual(rate(None), Decimal("0"))

    def test_rate_rejects_garbage_and_non_finite(self):
        for bad in ("5%", "abc", "NaN", "Infinity", "-Infinity"):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    rate(bad)


class DateTests(SimpleTestCase):
    def test_add_days_crosses_month_end(self):
        self.assertEqual(add_days(date(2025, 1, 20), 30), date(2025, 2, 19))

    def test_add_months_clamps_to_last_day_of_month(self):
        start = date(2025, 1, 31)
        self.assertEqual(add_months(start, 1), date(2025, 2, 28))
        self.assertEqual(add_months(start, 2), date(2025, 3, 31))
        self.assertEqual(add_months(start, 3), date(2025, 4, 30))
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))

    def test_add_months_rolls_the_year(self):
        self.assertEqual(add_months(date(2025, 11, 15), 3), date(2026, 2, 15))

    def test_days_between(self):
        self.assertEqual(days_between(date(2025, 3, 1), date(2025, 3, 11)), 10)
        self.assertEqual(days_between(date(2025, 3, 11), date(2025, 3, 1)), -10)

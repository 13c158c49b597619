from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta

from django.utils import timezone


def today() -> date:
    return timezone.localdate()


def as_date(value) -> date | None:
    """Drop time-of-day; aware datetimes are converted to local time first."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=int(days))


def add_months(d: date, months: int) -> date:
    """
    Calendar month increment; the day is clamped to the last day of the
    target month (Jan 31 + 1 month -> Feb 28/29, Jan 31 + 2 months -> Mar 31).
    """
    idx = (d.month - 1) + months
    year = d.year + (idx // 12)
    month = (idx % 12) + 1
    day = min(d.day, monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (as_date(end) - as_date(start)).days

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from django.conf import settings
from django.utils import timezone

from clients.models import Client
from core.dates import as_date

from .models import AttendanceLog


logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_NAME = "Unknown"

MSG_NOT_FOUND = "code not found"
MSG_NO_MEMBERSHIP = "no active membership"
MSG_EXPIRED = "membership expired"
MSG_GRANTED = "access granted"


def warning_threshold() -> int:
    return int(getattr(settings, "GYM_CHECKIN_WARNING_DAYS", 3))


def expiring_message(days_remaining: int) -> str:
    return f"access granted, membership expires in {days_remaining} day(s)"


@dataclass(frozen=True)
class CheckInResult:
    granted: bool
    warning: bool
    message: str
    client: Client | None
    log: AttendanceLog


def _decide(client: Client | None, today):
    """``(granted, warning, message)`` for a resolved client, first match wins."""
    if client is None:
        return False, False, MSG_NOT_FOUND
    if not client.active_membership_id or not client.membership_expiry_date:
        return False, False, MSG_NO_MEMBERSHIP

    days_remaining = client.days_remaining(today)
    if days_remaining < 0:
        return False, False, MSG_EXPIRED
    if days_remaining <= warning_threshold():
        return True, True, expiring_message(days_remaining)
    return True, False, MSG_GRANTED


def check_in(code: str, *, now=None) -> CheckInResult:
    """
    Admission decision for a presented human code.

    Unknown codes and missing memberships are ordinary denials, not errors.
    Every attempt leaves exactly one log row; a failed log write is raised.
    """
    now = now or timezone.now()
    today = as_date(now)

    code = (code or "").strip()
    client = Client.objects.filter(human_code__iexact=code).first() if code else None

    granted, warning, message = _decide(client, today)

    log_kwargs = {
        "client": client,
        "client_name": client.full_name if client else UNKNOWN_CLIENT_NAME,
        "success": granted,
        "message": message,
        "is_warning": warning,
    }
    if isinstance(now, datetime):
        log_kwargs["created_at"] = now
    log = AttendanceLog.objects.create(**log_kwargs)

    if not granted:
        logger.info("Check-in denied for code %r: %s", code, message)

    return CheckInResult(granted=granted, warning=warning, message=message, client=client, log=log)


def recent_logs(limit: int = 50):
    return AttendanceLog.objects.select_related("client").order_by("-created_at", "-id")[:limit]

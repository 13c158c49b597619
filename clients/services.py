from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from billing.models import Transaction
from core.dates import add_days, as_date, today as local_today
from core.exceptions import NotFound
from core.money import ZERO, money
from core.telegram_notify import notify_membership_renewal
from memberships.models import MembershipPlan

from .models import Client, Measurement


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenewalWindow:
    start_date: date
    expiry_date: date
    is_renewal_of_same_plan: bool


@dataclass(frozen=True)
class RenewalResult:
    client: Client
    transaction: Transaction
    window: RenewalWindow


def get_client(client_id, *, for_update: bool = False) -> Client:
    qs = Client.objects
    if for_update:
        qs = qs.select_for_update()
    client = qs.filter(pk=client_id).first()
    if client is None:
        raise NotFound(f"Client {client_id} not found")
    return client


def get_plan(plan_id) -> MembershipPlan:
    plan = MembershipPlan.objects.filter(pk=plan_id).first()
    if plan is None:
        raise NotFound(f"Membership plan {plan_id} not found")
    return plan


def check_plan_billable(plan: MembershipPlan) -> None:
    if money(plan.cost) <= ZERO:
        raise ValidationError("Plan cost must be positive")
    if int(plan.duration_days or 0) <= 0:
        raise ValidationError("Plan duration must be positive")


def renewal_window(client: Client, plan: MembershipPlan, now) -> RenewalWindow:
    """
    New membership window for ``client`` buying ``plan`` on ``now``.

    A window that is still running is extended from its current expiry, so
    no paid day is lost; a lapsed or missing one restarts from today.
    """
    today = as_date(now)
    current_expiry = client.membership_expiry_date

    start = today
    if current_expiry and current_expiry > today:
        start = current_expiry

    return RenewalWindow(
        start_date=start,
        expiry_date=add_days(start, plan.duration_days),
        is_renewal_of_same_plan=(
            client.active_membership_id is not None and client.active_membership_id == plan.pk
        ),
    )


def grant_membership(client: Client, plan: MembershipPlan, now) -> RenewalWindow:
    """Apply a renewal window to a locked client row and save it."""
    window = renewal_window(client, plan, now)
    client.set_membership_window(plan, window.start_date, window.expiry_date, now)
    client.save(
        update_fields=[
            "active_membership",
            "membership_start_date",
            "membership_expiry_date",
            "status",
        ]
    )
    return window


def _transaction_client_name(client: Client, plan: MembershipPlan) -> str:
    name = client.full_name
    extra = plan.extra_beneficiaries
    if extra:
        name = f"{name} (+ {extra} more)"
    return name


@transaction.atomic
def renew_membership(client_id, plan_id, *, now=None) -> RenewalResult:
    """Full up-front payment: extend or start the window and book the sale."""
    now = as_date(now or local_today())

    # Lock the client row: the new window is computed from the stored expiry.
    client = get_client(client_id, for_update=True)
    plan = get_plan(plan_id)
    check_plan_billable(plan)

    window = grant_membership(client, plan, now)

    tx = Transaction.objects.create(
        client=client,
        client_name=_transaction_client_name(client, plan),
        item_description=plan.name,
        amount=money(plan.cost),
        type=(
            Transaction.Type.MEMBERSHIP_RENEWAL
            if window.is_renewal_of_same_plan
            else Transaction.Type.MEMBERSHIP_NEW
        ),
    )

    if plan.extra_beneficiaries:
        logger.info(
            "Promotion %s sold to client %s: %s beneficiaries share it",
            plan.pk,
            client.human_code,
            plan.beneficiaries_count,
        )
    logger.info(
        "Membership %s for client %s: %s .. %s (%s)",
        plan.pk,
        client.human_code,
        window.start_date,
        window.expiry_date,
        tx.type,
    )

    notify_membership_renewal(client=client, plan=plan, tx=tx)
    return RenewalResult(client=client, transaction=tx, window=window)


def next_human_code() -> str:
    """Next sequential check-in code; call inside a transaction."""
    start = int(getattr(settings, "GYM_HUMAN_CODE_START", 1001))
    # Concurrent registrations queue up on the newest row.
    if Client.objects.select_for_update().order_by("-id").first() is None:
        return str(start)

    codes = [int(c) for c in Client.objects.values_list("human_code", flat=True) if str(c).isdigit()]
    return str(max([start - 1, *codes]) + 1)


@transaction.atomic
def register_client(
    *,
    first_name: str,
    last_name: str = "",
    phone: str = "",
    dni: str = "",
    email: str = "",
    address: str = "",
    plan_id=None,
    now=None,
) -> Client:
    first_name = (first_name or "").strip()
    if not first_name:
        raise ValidationError("First name is required")

    client = Client.objects.create(
        human_code=next_human_code(),
        first_name=first_name,
        last_name=(last_name or "").strip(),
        phone=(phone or "").strip(),
        dni=(dni or "").strip(),
        email=(email or "").strip(),
        address=(address or "").strip(),
        status=Client.Status.INACTIVE,
    )
    logger.info("Client %s registered with code %s", client.pk, client.human_code)

    if plan_id:
        renew_membership(client.pk, plan_id, now=now)
        client.refresh_from_db()
    return client


@transaction.atomic
def detach_plan(plan: MembershipPlan, *, now=None) -> int:
    """Drop every client's reference to ``plan`` (before it is deleted)."""
    now = as_date(now or local_today())
    count = 0
    for client in Client.objects.select_for_update().filter(active_membership=plan):
        client.clear_membership(now)
        client.save(update_fields=["active_membership", "status"])
        count += 1
    if count:
        logger.info("Plan %s detached from %s client(s)", plan.pk, count)
    return count


def refresh_statuses(*, now=None) -> int:
    """Persist derived status for every client whose stored one went stale."""
    now = as_date(now or local_today())
    changed = 0
    for client_id in list(Client.objects.values_list("pk", flat=True)):
        with transaction.atomic():
            client = Client.objects.select_for_update().get(pk=client_id)
            if client.refresh_status(now):
                client.save(update_fields=["status"])
                changed += 1
    logger.info("Client statuses refreshed: %s changed", changed)
    return changed


def expiring_soon(*, now=None, within_days: int | None = None):
    today = as_date(now or local_today())
    if within_days is None:
        within_days = int(getattr(settings, "GYM_EXPIRING_SOON_DAYS", 5))
    return (
        Client.objects
        .select_related("active_membership")
        .filter(
            active_membership__isnull=False,
            membership_expiry_date__gte=today,
            membership_expiry_date__lte=add_days(today, within_days),
        )
        .order_by("membership_expiry_date", "id")
    )


MEASUREMENT_LIMIT = Decimal("9999.99")


def _measure(value, field: str, *, required: bool = False):
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not parsed.is_finite() or parsed <= 0 or parsed > MEASUREMENT_LIMIT:
        raise ValidationError(f"{field} must be between 0 and {MEASUREMENT_LIMIT}")
    return money(parsed)


def add_measurement(client_id, *, weight, height=None, chest=None, waist=None, arm=None, notes="") -> Measurement:
    client = get_client(client_id)
    measurement = Measurement.objects.create(
        client=client,
        weight=_measure(weight, "weight", required=True),
        height=_measure(height, "height"),
        chest=_measure(chest, "chest"),
        waist=_measure(waist, "waist"),
        arm=_measure(arm, "arm"),
        notes=(notes or "").strip(),
    )
    logger.info("Measurement %s recorded for client %s", measurement.pk, client.human_code)
    return measurement

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum

from clients.services import check_plan_billable, get_client, get_plan, grant_membership
from core.dates import add_months, as_date, today as local_today
from core.exceptions import InvalidState, NotFound
from core.money import money, rate
from core.telegram_notify import notify_installment_payment, notify_plan_completed

from .models import Installment, InstallmentPlan, Transaction


logger = logging.getLogger(__name__)

# Matches InstallmentPlan.interest_rate (max_digits=6, decimal_places=4).
RATE_STEP = Decimal("0.0001")
MAX_RATE = Decimal("99.9999")


@dataclass(frozen=True)
class PlanProgress:
    current_index: int
    total_count: int
    paid_count: int
    installment_amount: Decimal
    plan_total: Decimal
    interest_rate: Decimal
    completed: bool


@dataclass(frozen=True)
class SettlementResult:
    transaction: Transaction
    installment: Installment
    progress: PlanProgress


def build_schedule(base_cost, installment_count: int, interest_rate, start: date):
    """
    Plan figures for ``installment_count`` monthly payments starting after ``start``.

    The total is rounded to cents first and that stored total is what gets
    split, so an installment can sit a cent away from rounding
    ``cost * (1 + rate) / N`` in one step. Every installment carries the
    same rounded amount; the few cents lost or added against the total are
    accepted.
    Returns ``(total_amount, installment_amount, [(sequence, due_date), ...])``.
    """
    total = money(money(base_cost) * (1 + rate(interest_rate)))
    per_installment = money(total / installment_count)
    dues = [(i, add_months(start, i)) for i in range(1, installment_count + 1)]
    return total, per_installment, dues


def check_interest_rate(value) -> Decimal:
    """Rate as it will be stored; anything the column would alter is rejected."""
    interest = rate(value)
    if interest < 0:
        raise ValidationError("Interest rate cannot be negative")
    if interest > MAX_RATE:
        raise ValidationError(f"Interest rate cannot exceed {MAX_RATE}")
    if interest != interest.quantize(RATE_STEP):
        raise ValidationError("Interest rate allows at most 4 decimal places")
    return interest.quantize(RATE_STEP)


@transaction.atomic
def create_installment_plan(client_id, plan_id, installment_count, interest_rate=None, *, now=None) -> InstallmentPlan:
    """
    Split a membership's cost into monthly installments.

    Nothing is charged and no access is granted here: the first settled
    installment does that.
    """
    now = as_date(now or local_today())

    try:
        installment_count = int(installment_count)
    except (TypeError, ValueError):
        raise ValidationError("Installment count must be a whole number")
    if installment_count < 2:
        raise InvalidState("An installment plan needs at least 2 installments; use a renewal instead")

    if interest_rate is None:
        interest_rate = getattr(settings, "GYM_DEFAULT_INTEREST_RATE", "0")
    interest = check_interest_rate(interest_rate)

    client = get_client(client_id, for_update=True)
    plan = get_plan(plan_id)
    check_plan_billable(plan)

    total, per_installment, dues = build_schedule(plan.cost, installment_count, interest, now)

    installment_plan = InstallmentPlan.objects.create(
        client=client,
        membership=plan,
        total_amount=total,
        installment_count=installment_count,
        installment_amount=per_installment,
        interest_rate=interest,
    )
    Installment.objects.bulk_create(
        [
            Installment(plan=installment_plan, sequence=seq, amount=per_installment, due_date=due)
            for seq, due in dues
        ]
    )

    logger.info(
        "Installment plan %s for client %s: %s x %s (total %s, interest %s)",
        installment_plan.pk,
        client.human_code,
        installment_count,
        per_installment,
        total,
        interest,
    )
    return installment_plan


def _progress(plan: InstallmentPlan, installment: Installment) -> PlanProgress:
    paid = plan.installments.filter(status=Installment.Status.PAID).count()
    return PlanProgress(
        current_index=installment.sequence,
        total_count=plan.installment_count,
        paid_count=paid,
        installment_amount=plan.installment_amount,
        plan_total=plan.total_amount,
        interest_rate=plan.interest_rate,
        completed=plan.status == InstallmentPlan.Status.COMPLETED,
    )


def _check_payment_method(payment_method: str) -> str:
    method = (payment_method or "").strip().lower()
    if method not in Installment.PaymentMethod.values:
        raise ValidationError(f"Unknown payment method: {payment_method!r}")
    return method


@transaction.atomic
def mark_installment_paid(installment_id, payment_method: str, note: str = "", *, now=None) -> SettlementResult:
    now = as_date(now or local_today())
    method = _check_payment_method(payment_method)

    installment = (
        Installment.objects
        .select_for_update()
        .select_related("plan", "plan__membership")
        .filter(pk=installment_id)
        .first()
    )
    if installment is None:
        raise NotFound(f"Installment {installment_id} not found")
    if installment.status == Installment.Status.PAID:
        raise InvalidState(f"Installment {installment_id} is already paid")

    plan = installment.plan
    membership = plan.membership
    client = get_client(plan.client_id, for_update=True)
    first_payment = not plan.installments.filter(status=Installment.Status.PAID).exists()

    installment.status = Installment.Status.PAID
    installment.paid_date = now
    installment.payment_method = method
    installment.note = (note or "").strip()
    installment.save(update_fields=["status", "paid_date", "payment_method", "note"])

    tx = Transaction.objects.create(
        client=client,
        client_name=client.full_name,
        item_description=f"{membership.name} - Cuota {installment.sequence}/{plan.installment_count}",
        amount=money(installment.amount),
        type=Transaction.Type.INSTALLMENT_PAYMENT,
        installment=installment,
    )

    if not plan.installments.filter(status=Installment.Status.PENDING).exists():
        plan.status = InstallmentPlan.Status.COMPLETED
        plan.save(update_fields=["status"])
        logger.info("Installment plan %s completed", plan.pk)
        notify_plan_completed(client=client, plan=plan)

    # Any settled installment leaves the client with current access.
    if first_payment or client.derived_status(now) != client.Status.ACTIVE:
        grant_membership(client, membership, now)
    elif client.refresh_status(now):
        client.save(update_fields=["status"])

    logger.info(
        "Installment %s/%s of plan %s paid by client %s (%s)",
        installment.sequence,
        plan.installment_count,
        plan.pk,
        client.human_code,
        method,
    )
    notify_installment_payment(client=client, installment=installment, tx=tx)

    return SettlementResult(transaction=tx, installment=installment, progress=_progress(plan, installment))


def list_overdue_payments(*, now=None):
    today = as_date(now or local_today())
    return (
        Installment.objects
        .select_related("plan", "plan__client", "plan__membership")
        .filter(status=Installment.Status.PENDING, due_date__lt=today)
        .order_by("due_date", "plan_id", "sequence")
    )


def list_transactions(*, client_id=None, tx_type=None, limit: int | None = None):
    """Ledger rows newest first, with the income they add up to."""
    qs = Transaction.objects.select_related("client").order_by("-created_at", "-id")
    if client_id is not None:
        qs = qs.filter(client_id=client_id)
    if tx_type:
        if tx_type not in Transaction.Type.values:
            raise ValidationError(f"Unknown transaction type: {tx_type!r}")
        qs = qs.filter(type=tx_type)

    total = money(qs.aggregate(total=Sum("amount"))["total"])
    if limit is not None:
        if limit < 1:
            raise ValidationError("Limit must be positive")
        qs = qs[:limit]
    return list(qs), total

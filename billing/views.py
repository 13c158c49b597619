from django.contrib.admin.views.decorators import staff_member_required
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from core.api import as_int, json_api, json_body, require_fields

from .models import Installment, InstallmentPlan, Transaction
from .receipt import build_receipt
from .services import (
    create_installment_plan,
    list_overdue_payments,
    list_transactions,
    mark_installment_paid,
)


def installment_json(it: Installment) -> dict:
    return {
        "id": it.pk,
        "plan_id": it.plan_id,
        "sequence": it.sequence,
        "amount": str(it.amount),
        "due_date": it.due_date.isoformat(),
        "status": it.status,
        "paid_date": it.paid_date.isoformat() if it.paid_date else None,
        "payment_method": it.payment_method,
        "note": it.note,
    }


def plan_json(plan: InstallmentPlan) -> dict:
    return {
        "id": plan.pk,
        "client_id": plan.client_id,
        "membership_id": plan.membership_id,
        "total_amount": str(plan.total_amount),
        "installment_count": plan.installment_count,
        "installment_amount": str(plan.installment_amount),
        "interest_rate": str(plan.interest_rate),
        "status": plan.status,
        "installments": [installment_json(it) for it in plan.installments.order_by("sequence")],
    }


@staff_member_required
@require_POST
@json_api
def create_plan(request: HttpRequest):
    # expects json: {client_id, plan_id, installment_count, interest_rate?}
    payload = json_body(request)
    require_fields(payload, "client_id", "plan_id", "installment_count")

    plan = create_installment_plan(
        as_int(payload["client_id"]),
        as_int(payload["plan_id"]),
        payload["installment_count"],
        payload.get("interest_rate"),
    )
    return JsonResponse({"ok": True, "plan": plan_json(plan)}, status=201)


@staff_member_required
@require_POST
@json_api
def pay_installment(request: HttpRequest, installment_id: int):
    # expects json: {payment_method, note?}
    payload = json_body(request)
    require_fields(payload, "payment_method")

    result = mark_installment_paid(installment_id, payload["payment_method"], payload.get("note") or "")
    return JsonResponse(
        {
            "ok": True,
            "installment": installment_json(result.installment),
            "transaction": build_receipt(result.transaction, result.progress),
        }
    )


@staff_member_required
@require_GET
def overdue(request: HttpRequest):
    items = []
    for it in list_overdue_payments():
        row = installment_json(it)
        row["client_code"] = it.plan.client.human_code
        row["client_name"] = it.plan.client.full_name
        row["membership"] = it.plan.membership.name
        items.append(row)
    return JsonResponse({"ok": True, "installments": items})


def transaction_json(tx: Transaction) -> dict:
    return {
        "id": tx.pk,
        "client_id": tx.client_id,
        "client_name": tx.client_name,
        "item_description": tx.item_description,
        "amount": str(tx.amount),
        "type": tx.type,
        "installment_id": tx.installment_id,
        "created_at": timezone.localtime(tx.created_at).isoformat(),
    }


@staff_member_required
@require_GET
@json_api
def transactions(request: HttpRequest):
    # optional query: ?client_id=&type=&limit=
    client_id = request.GET.get("client_id")
    limit = request.GET.get("limit")

    rows, total = list_transactions(
        client_id=as_int(client_id) if client_id else None,
        tx_type=request.GET.get("type") or None,
        limit=as_int(limit) if limit else 100,
    )
    return JsonResponse(
        {
            "ok": True,
            "total": str(total),
            "transactions": [transaction_json(tx) for tx in rows],
        }
    )

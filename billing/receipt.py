from django.conf import settings
from django.utils import timezone

from core.money import amount_in_words, money


def issuer_fields() -> dict:
    return {
        "gym_name": (getattr(settings, "GYM_NAME", "") or "").strip(),
        "business_name": (getattr(settings, "GYM_BUSINESS_NAME", "") or "").strip(),
        "ruc": (getattr(settings, "GYM_RUC", "") or "").strip() or "00000000000",
        "address": (getattr(settings, "GYM_ADDRESS", "") or "").strip(),
        "phone": (getattr(settings, "GYM_PHONE", "") or "").strip(),
    }


def progress_fields(progress) -> dict:
    return {
        "current_index": progress.current_index,
        "total_count": progress.total_count,
        "paid_count": progress.paid_count,
        "installment_amount": str(money(progress.installment_amount)),
        "plan_total": str(money(progress.plan_total)),
        "interest_rate": str(progress.interest_rate),
        "completed": progress.completed,
    }


def build_receipt(tx, progress=None) -> dict:
    """Everything a receipt renderer needs, without a second read."""
    client = tx.client
    receipt = {
        "issuer": issuer_fields(),
        "number": f"{tx.pk:08d}",
        "date": timezone.localtime(tx.created_at).strftime("%d/%m/%Y %H:%M"),
        "client": {
            "name": tx.client_name,
            "code": client.human_code if client else "",
            "dni": client.dni if client else "",
        },
        "item": tx.item_description,
        "type": tx.type,
        "amount": str(money(tx.amount)),
        "currency_symbol": getattr(settings, "GYM_CURRENCY_SYMBOL", "S/."),
        "amount_in_words": amount_in_words(tx.amount, getattr(settings, "GYM_CURRENCY_LABEL", "SOLES")),
    }
    if progress is not None:
        receipt["installment"] = progress_fields(progress)
    return receipt

import logging

import requests
from django.conf import settings
from django.utils.html import escape


logger = logging.getLogger(__name__)


def tg_send(text: str):
    if not getattr(settings, "TELEGRAM_NOTIFICATIONS", False):
        return

    token = getattr(settings, "TELEGRAM_BOT_TOKEN", "")
    chat_id = getattr(settings, "TELEGRAM_CHAT_ID", "")

    if not token or not chat_id:
        return

    url = f"https://api.telegram.org/bot{token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }

    try:
        requests.post(url, json=payload, timeout=5)
    except requests.RequestException:
        logger.warning("Telegram message was not sent due to a request error")


def _fmt_client(client) -> str:
    if not client:
        return "—"
    name = (client.full_name or "").strip()
    code = getattr(client, "human_code", "") or ""
    label = f"{name} ({code})" if code else name
    return escape(label or str(client))


def _fmt_amount(amount) -> str:
    symbol = getattr(settings, "GYM_CURRENCY_SYMBOL", "S/.")
    return escape(f"{symbol} {amount}")


def notify_membership_renewal(*, client, plan, tx):
    tg_send(
        "🏋️ <b>Membership payment</b>\n"
        f"Client: <b>{_fmt_client(client)}</b>\n"
        f"Plan: <b>{escape(plan.name)}</b>\n"
        f"Amount: <b>{_fmt_amount(tx.amount)}</b>\n"
        f"Valid until: <b>{client.membership_expiry_date:%d.%m.%Y}</b>\n"
        f"Type: {escape(tx.get_type_display())}"
    )


def notify_installment_payment(*, client, installment, tx):
    plan = installment.plan
    tg_send(
        "💳 <b>Installment paid</b>\n"
        f"Client: <b>{_fmt_client(client)}</b>\n"
        f"Installment: <b>{installment.sequence}/{plan.installment_count}</b>\n"
        f"Amount: <b>{_fmt_amount(tx.amount)}</b>\n"
        f"Method: <b>{escape(installment.get_payment_method_display())}</b>"
    )


def notify_plan_completed(*, client, plan):
    tg_send(
        "✅ <b>Installment plan completed</b>\n"
        f"Client: <b>{_fmt_client(client)}</b>\n"
        f"Membership: <b>{escape(plan.membership.name)}</b>\n"
        f"Total: <b>{_fmt_amount(plan.total_amount)}</b>"
    )

from django.contrib.admin.views.decorators import staff_member_required
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from core.api import json_api, json_body, require_fields

from .services import check_in, recent_logs


@staff_member_required
@require_POST
@json_api
def check_in_view(request: HttpRequest):
    # expects json: {code}, as read from the QR scanner or typed in
    payload = json_body(request)
    require_fields(payload, "code")

    result = check_in(str(payload["code"]))
    client = result.client
    return JsonResponse(
        {
            "ok": True,
            "granted": result.granted,
            "warning": result.warning,
            "message": result.message,
            "client": {
                "id": client.pk,
                "human_code": client.human_code,
                "name": client.full_name,
                "membership_expiry_date": (
                    client.membership_expiry_date.isoformat() if client.membership_expiry_date else None
                ),
            } if client else None,
        }
    )


@staff_member_required
@require_GET
def logs(request: HttpRequest):
    rows = [
        {
            "id": log.pk,
            "client_id": log.client_id,
            "client_name": log.client_name,
            "timestamp": timezone.localtime(log.created_at).isoformat(),
            "success": log.success,
            "message": log.message,
            "is_warning": log.is_warning,
        }
        for log in recent_logs()
    ]
    return JsonResponse({"ok": True, "logs": rows})

from django.contrib.admin.views.decorators import staff_member_required
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_http_methods, require_POST

from billing.receipt import build_receipt
from core.api import as_int, json_api, json_body, require_fields

from .models import Client, Measurement
from .services import add_measurement, get_client, register_client, renew_membership


def client_json(client: Client) -> dict:
    return {
        "id": client.pk,
        "human_code": client.human_code,
        "first_name": client.first_name,
        "last_name": client.last_name,
        "phone": client.phone,
        "dni": client.dni,
        "email": client.email,
        "active_membership_id": client.active_membership_id,
        "membership_start_date": client.membership_start_date.isoformat() if client.membership_start_date else None,
        "membership_expiry_date": client.membership_expiry_date.isoformat() if client.membership_expiry_date else None,
        "status": client.status,
    }


@staff_member_required
@require_POST
@json_api
def register(request: HttpRequest):
    # expects json: {first_name, last_name?, phone?, dni?, email?, address?, plan_id?}
    payload = json_body(request)
    require_fields(payload, "first_name")

    plan_id = payload.get("plan_id")
    client = register_client(
        first_name=payload.get("first_name"),
        last_name=payload.get("last_name", ""),
        phone=payload.get("phone", ""),
        dni=payload.get("dni", ""),
        email=payload.get("email", ""),
        address=payload.get("address", ""),
        plan_id=as_int(plan_id) if plan_id else None,
    )
    return JsonResponse({"ok": True, "client": client_json(client)}, status=201)


@staff_member_required
@require_POST
@json_api
def renew(request: HttpRequest, client_id: int):
    # expects json: {plan_id}
    payload = json_body(request)
    require_fields(payload, "plan_id")

    result = renew_membership(client_id, as_int(payload["plan_id"]))
    return JsonResponse(
        {
            "ok": True,
            "client": client_json(result.client),
            "transaction": build_receipt(result.transaction),
        }
    )


def measurement_json(m: Measurement) -> dict:
    def num(value):
        return str(value) if value is not None else None

    return {
        "id": m.pk,
        "measured_at": timezone.localtime(m.measured_at).isoformat(),
        "weight": num(m.weight),
        "height": num(m.height),
        "chest": num(m.chest),
        "waist": num(m.waist),
        "arm": num(m.arm),
        "notes": m.notes,
    }


@staff_member_required
@require_http_methods(["GET", "POST"])
@json_api
def measurements(request: HttpRequest, client_id: int):
    if request.method == "POST":
        # expects json: {weight, height?, chest?, waist?, arm?, notes?}
        payload = json_body(request)
        require_fields(payload, "weight")
        m = add_measurement(
            client_id,
            weight=payload.get("weight"),
            height=payload.get("height"),
            chest=payload.get("chest"),
            waist=payload.get("waist"),
            arm=payload.get("arm"),
            notes=payload.get("notes") or "",
        )
        return JsonResponse({"ok": True, "measurement": measurement_json(m)}, status=201)

    client = get_client(client_id)
    return JsonResponse(
        {
            "ok": True,
            "client_id": client.pk,
            "measurements": [measurement_json(m) for m in client.measurements.all()],
        }
    )

import json
from functools import wraps

from django.core.exceptions import ValidationError
from django.http import HttpRequest, JsonResponse

from .exceptions import InvalidState, NotFound


class BadRequest(Exception):
    def __init__(self, error: str):
        super().__init__(error)
        self.error = error


def json_body(request: HttpRequest) -> dict:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        raise BadRequest("bad_json")
    if not isinstance(payload, dict):
        raise BadRequest("bad_json")
    return payload


def json_api(view):
    """Map service errors to ``{"ok": false, ...}`` responses."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BadRequest as exc:
            return JsonResponse({"ok": False, "error": exc.error}, status=400)
        except NotFound as exc:
            return JsonResponse({"ok": False, "error": exc.code, "messages": [exc.message]}, status=404)
        except InvalidState as exc:
            return JsonResponse({"ok": False, "error": exc.code, "messages": [exc.message]}, status=409)
        except ValidationError as exc:
            return JsonResponse({"ok": False, "error": "validation", "messages": exc.messages}, status=400)

    return wrapper


def require_fields(payload: dict, *names: str) -> None:
    if any(payload.get(name) in (None, "") for name in names):
        raise BadRequest("missing_fields")


def as_int(value, error: str = "bad_number") -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(error)

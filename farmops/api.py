from __future__ import annotations

import json
from typing import Any, Optional

from django import forms
from django.http import HttpRequest, JsonResponse

from inventory.services import LedgerError, LotNotFound


def json_error(message: str, *, status: int = 400, errors: Optional[dict[str, Any]] = None, **extra: Any) -> JsonResponse:
    payload: dict[str, Any] = {"error": message}
    if errors:
        payload["errors"] = errors
    payload.update(extra)
    return JsonResponse(payload, status=status)


def form_errors(form: forms.Form) -> dict[str, list[str]]:
    error_dict: dict[str, list[str]] = {}
    for field, messages_list in form.errors.items():
        error_dict[field] = [str(message) for message in messages_list]
    return error_dict


def load_json_body(request: HttpRequest) -> tuple[Optional[dict[str, Any]], Optional[JsonResponse]]:
    try:
        payload = json.loads(request.body or "{}")
    except json.JSONDecodeError:
        return None, json_error("Invalid JSON")
    if not isinstance(payload, dict):
        return None, json_error("The body must be a JSON object")
    return payload, None


def ledger_error_response(exc: LedgerError) -> JsonResponse:
    status = 404 if isinstance(exc, LotNotFound) else 409
    return json_error(
        str(exc),
        status=status,
        code=exc.code,
        available=exc.available,
        requested=exc.requested,
    )

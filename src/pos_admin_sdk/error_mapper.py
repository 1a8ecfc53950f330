from __future__ import annotations

from typing import Mapping

from .exceptions import ApiError, error_type_for_status


def resolve_message(status_code: int, payload: Mapping[str, object] | None, raw_text: str | None = None) -> str:
    """Backend ``message`` first, then the raw body, then the bare status."""
    if payload:
        message = payload.get("message")
        if message:
            return str(message)
    if raw_text and raw_text.strip():
        return raw_text.strip()
    return f"Status {status_code}"


def map_error(
    status_code: int,
    payload: Mapping[str, object] | None,
    raw_text: str | None = None,
    *,
    operation: str | None = None,
) -> ApiError:
    payload = payload or {}
    error_type = error_type_for_status(status_code)
    return error_type(
        code=str(payload.get("code") or payload.get("error") or "HTTP_ERROR"),
        message=resolve_message(status_code, payload, raw_text),
        details=payload.get("details"),
        status_code=status_code,
        raw_payload=dict(payload) if payload else raw_text,
        operation=operation,
    )

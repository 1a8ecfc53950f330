"""Telemetry records emitted by the admin services.

A record carries ids, stage names and timings only. Anything that could
identify a clerk or a customer stays out; the ``extra`` mapping is checked
for PII-looking keys when the record is built.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from pos_admin_sdk import SaleOutcome

TELEMETRY_CATEGORIES = {"auth", "sale", "inventory"}
_PII_KEYS = {
    "email",
    "password",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "phone",
    "full_name",
    "client_name",
    "card_number",
    "card_name",
    "notes",
}
_SALE_EVENT_NAMES = {
    "create": "sale_submitted",
    "modify": "sale_submitted",
    "repair": "inventory_repaired",
}


def _utc_stamp(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    action: str
    success: bool
    timestamp_utc: str
    duration_ms: int | None = None
    error_code: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.category not in TELEMETRY_CATEGORIES:
            raise ValueError(f"Unsupported telemetry category: {self.category}")
        leaked = sorted(key for key in self.extra if key.lower() in _PII_KEYS)
        if leaked:
            raise ValueError(f"PII-like keys are forbidden in telemetry: {leaked}")

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value not in (None, (), {})}


@dataclass(frozen=True)
class SaleEvent(TelemetryEvent):
    """One sale saga run: how far it got and where it stopped."""

    saga_status: str | None = None
    stages: tuple[str, ...] = ()
    failed_stage: str | None = None
    flight_key: str | None = None
    branch_id: int | None = None
    sale_id: int | None = None
    recorded: bool | None = None
    compensated: bool | None = None


def sale_event(
    outcome: SaleOutcome,
    *,
    action: str,
    flight_key: tuple = (),
    branch_id: int | None = None,
    duration_ms: int | None = None,
    now: datetime | None = None,
) -> SaleEvent:
    failed = outcome.failed_stage
    return SaleEvent(
        category="inventory" if action == "repair" else "sale",
        name=_SALE_EVENT_NAMES[action],
        action=action,
        success=outcome.ok,
        timestamp_utc=_utc_stamp(now),
        duration_ms=duration_ms,
        error_code=failed.value if failed else None,
        saga_status=outcome.status.value,
        stages=tuple(stage.value for stage in outcome.stages),
        failed_stage=failed.value if failed else None,
        flight_key=":".join(str(part) for part in flight_key) or None,
        branch_id=branch_id,
        sale_id=outcome.sale_id,
        recorded=outcome.recorded,
        compensated=outcome.compensated or None,
    )


def auth_event(
    action: str,
    *,
    success: bool,
    error_code: str | None = None,
    extra: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    return TelemetryEvent(
        category="auth",
        name=f"auth_{action}",
        action=action,
        success=success,
        timestamp_utc=_utc_stamp(now),
        error_code=error_code,
        extra=dict(extra or {}),
    )

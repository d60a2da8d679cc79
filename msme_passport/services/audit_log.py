"""Append-only audit log service. Never update or delete - immutable audit trail."""
from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from msme_passport.models.audit_log import AuditLog

CATEGORY_STATUS_CHANGE = "status_change"
CATEGORY_PAYMENT = "payment"
CATEGORY_PASSPORT = "passport"
CATEGORY_COLLABORATION = "collaboration"
CATEGORY_FAILED_ATTEMPT = "failed_attempt"

_TITLE_LEN = 255
_EMAIL_LEN = 255
_IP_LEN = 64
_USER_AGENT_LEN = 500


def _json_safe(v: Any) -> Any:
    if v is None or isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, enum.Enum):
        return v.value
    if isinstance(v, dict):
        return {str(k): _json_safe(x) for k, x in v.items()}
    if isinstance(v, (list, tuple, set)):
        return [_json_safe(x) for x in v]
    return str(v)


def request_context(request: Request | None) -> dict[str, str | None]:
    """ip_address/user_agent kwargs for create_log."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": (request.headers.get("user-agent") or "").strip() or None,
    }


def create_log(
    db: Session,
    category: str,
    title: str,
    message: str,
    *,
    business_id: str | None = None,
    invitation_id: str | None = None,
    actor_user_id: str | None = None,
    actor_email: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    meta: dict[str, Any] | None = None,
) -> AuditLog:
    """Append one audit record. Strings are truncated to column limits; commit stays with the caller."""
    entry = AuditLog(
        category=category,
        title=(title or "")[:_TITLE_LEN].strip() or "-",
        message=(message or "").strip() or "-",
        business_id=business_id,
        invitation_id=invitation_id,
        actor_user_id=actor_user_id,
        actor_email=actor_email[:_EMAIL_LEN] if actor_email else None,
        ip_address=ip_address[:_IP_LEN] if ip_address else None,
        user_agent=user_agent[:_USER_AGENT_LEN] if user_agent else None,
        meta=_json_safe(meta) if meta is not None else None,
    )
    db.add(entry)
    db.flush()
    return entry

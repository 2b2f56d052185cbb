# backend/plotbook/domain/activity.py
from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..models import ActivityEvent


ACTION_TYPES = ("auth", "data", "admin", "system")
DATE_FILTERS = ("all", "today", "week", "month")

# action -> (action_type, icon)
ACTIONS: dict[str, tuple[str, str]] = {
    "User logged in": ("auth", "log-in"),
    "User signed up": ("auth", "user-plus"),
    "Invitation accepted": ("auth", "user-check"),
    "Property saved": ("data", "bookmark"),
    "Property unsaved": ("data", "bookmark-minus"),
    "User invited": ("admin", "mail"),
    "Permissions updated": ("admin", "shield"),
}


def _dumps(v: Optional[dict[str, Any]]) -> Optional[str]:
    if v is None:
        return None
    return json.dumps(v, sort_keys=True, default=str)


def client_meta(request: Optional[Request]) -> dict[str, Optional[str]]:
    if request is None:
        return {"ip_address": None, "user_agent": None}
    fwd = request.headers.get("x-forwarded-for")
    ip = fwd.split(",")[0].strip() if fwd else (request.client.host if request.client else None)
    ua = request.headers.get("user-agent")
    return {"ip_address": ip, "user_agent": ua[:255] if ua else None}


def record_activity(
    db: Session,
    *,
    company_id: Optional[int],
    actor_user_id: Optional[int],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    details: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> ActivityEvent:
    """
    Append one activity row.

    - Never commits. The event lands in the caller's transaction together
      with the change it describes.
    - Unknown actions are filed as "system".
    """
    action_type, icon = ACTIONS.get(action, ("system", "activity"))
    meta = client_meta(request)
    row = ActivityEvent(
        company_id=company_id,
        actor_user_id=actor_user_id,
        action=action,
        action_type=action_type,
        icon=icon,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        details=_dumps(details),
        ip_address=meta["ip_address"],
        user_agent=meta["user_agent"],
        created_at=datetime.utcnow(),
    )
    db.add(row)
    return row


def date_filter_start(date_filter: str, *, now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower bound for created_at, or None for "all"."""
    now = now or datetime.utcnow()
    if date_filter == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_filter == "week":
        return now - timedelta(days=7)
    if date_filter == "month":
        return now - timedelta(days=30)
    return None

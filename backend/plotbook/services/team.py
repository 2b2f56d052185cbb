# backend/plotbook/services/team.py
from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..domain.activity import ACTION_TYPES, DATE_FILTERS, date_filter_start, record_activity
from ..domain.property_search import ilike_contains
from ..errors import NotFound, ValidationError
from ..models import ActivityEvent, Invitation, User

log = logging.getLogger(__name__)

ACTIVE_WINDOW = timedelta(days=1)
INACTIVE_WINDOW = timedelta(days=30)

_BASE_PERMS = ["view_map_search", "view_saved_properties", "view_dashboard", "save_properties"]

ROLE_CATALOGUE: list[dict[str, Any]] = [
    {
        "id": "admin",
        "name": "Admin",
        "description": "Full system access with all permissions",
        "color": "red",
        "permissions": _BASE_PERMS
        + [
            "view_team",
            "export_data",
            "view_property_details",
            "access_database",
            "invite_users",
            "manage_roles",
            "edit_user_profiles",
            "system_settings",
            "generate_reports",
            "view_analytics",
        ],
    },
    {
        "id": "manager",
        "name": "Manager",
        "description": "Team management and advanced data access",
        "color": "purple",
        "permissions": _BASE_PERMS
        + ["export_data", "view_property_details", "invite_users", "generate_reports", "view_analytics"],
    },
    {
        "id": "engineer",
        "name": "Engineer",
        "description": "Technical access with data and development permissions",
        "color": "blue",
        "permissions": _BASE_PERMS + ["export_data", "view_property_details", "access_database", "generate_reports"],
    },
    {
        "id": "designer",
        "name": "Designer",
        "description": "Design and user experience focused permissions",
        "color": "green",
        "permissions": _BASE_PERMS + ["view_property_details", "generate_reports"],
    },
    {
        "id": "analyst",
        "name": "Analyst",
        "description": "Data analysis and reporting permissions",
        "color": "yellow",
        "permissions": _BASE_PERMS + ["export_data", "view_property_details", "generate_reports", "view_analytics"],
    },
    {
        "id": "user",
        "name": "User",
        "description": "Basic user permissions for standard functionality",
        "color": "gray",
        "permissions": _BASE_PERMS + ["view_property_details"],
    },
]


def _now() -> datetime:
    return datetime.utcnow()


def _require_company(company_id: Optional[int]) -> int:
    if company_id is None:
        raise ValidationError("User not associated with a company")
    return int(company_id)


def member_status(updated_at: datetime, *, now: Optional[datetime] = None) -> str:
    age = (now or _now()) - updated_at
    if age <= ACTIVE_WINDOW:
        return "active"
    if age <= INACTIVE_WINDOW:
        return "inactive"
    return "pending"


def member_view(u: User, *, now: Optional[datetime] = None) -> dict[str, Any]:
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role or "user",
        "image": u.image,
        "emailVerified": bool(u.email_verified),
        "createdAt": u.created_at,
        "updatedAt": u.updated_at,
        "company": {"name": u.company.name} if u.company is not None else None,
        "canAccessDashboard": bool(u.can_access_dashboard),
        "canAccessSavedProperties": bool(u.can_access_saved_properties),
        "canAccessTeamManagement": bool(u.can_access_team_management),
        "status": member_status(u.updated_at, now=now),
        "lastActive": u.updated_at,
    }


def list_members(db: Session, *, company_id: Optional[int]) -> list[User]:
    cid = _require_company(company_id)
    return list(
        db.scalars(
            select(User)
            .where(User.company_id == cid)
            .options(selectinload(User.company))
            .order_by(User.created_at.desc(), User.id.desc())
        ).all()
    )


def update_permissions(
    db: Session,
    *,
    actor_id: int,
    company_id: Optional[int],
    member_id: int,
    changes: dict[str, Any],
    request: Optional[Request] = None,
) -> User:
    """
    `changes` maps User column -> new value and holds only the keys the
    client sent. Values must be real booleans.
    """
    cid = _require_company(company_id)
    if not changes:
        raise ValidationError("No permission changes provided")
    for col, v in changes.items():
        if not isinstance(v, bool):
            raise ValidationError(f"{col} must be a boolean")

    member = db.scalar(select(User).where(User.id == member_id))
    if member is None or member.company_id != cid:
        raise NotFound("Member not found or access denied")

    if member.id == actor_id and changes.get("can_access_team_management") is False:
        raise ValidationError("You cannot revoke your own team management access")

    before = {col: bool(getattr(member, col)) for col in changes}
    for col, v in changes.items():
        setattr(member, col, v)
    member.updated_at = _now()
    db.add(member)

    record_activity(
        db,
        company_id=cid,
        actor_user_id=actor_id,
        action="Permissions updated",
        entity_type="user",
        entity_id=member.id,
        details={"before": before, "after": changes},
        request=request,
    )
    db.commit()
    db.refresh(member)
    log.info("permissions_updated", extra={"user_id": member.id, "company_id": cid})
    return member


def team_stats(db: Session, *, company_id: Optional[int]) -> dict[str, int]:
    cid = _require_company(company_id)
    now = _now()

    total = int(db.scalar(select(func.count(User.id)).where(User.company_id == cid)) or 0)
    active = int(
        db.scalar(
            select(func.count(User.id)).where(User.company_id == cid, User.updated_at >= now - INACTIVE_WINDOW)
        )
        or 0
    )
    pending = int(
        db.scalar(
            select(func.count(Invitation.id)).where(
                Invitation.company_id == cid,
                Invitation.status == "pending",
                Invitation.expires > now,
            )
        )
        or 0
    )
    roles = int(db.scalar(select(func.count(func.distinct(User.role))).where(User.company_id == cid)) or 0)

    return {
        "totalMembers": total,
        "activeMembers": active,
        "pendingInvitations": pending,
        "totalRoles": roles,
    }


def roles_with_counts(db: Session, *, company_id: Optional[int]) -> list[dict[str, Any]]:
    cid = _require_company(company_id)
    counts = dict(
        db.execute(select(User.role, func.count(User.id)).where(User.company_id == cid).group_by(User.role)).all()
    )
    return [{**role, "permissions": list(role["permissions"]), "userCount": int(counts.get(role["id"], 0))} for role in ROLE_CATALOGUE]


def _activity_view(ev: ActivityEvent) -> dict[str, Any]:
    actor = ev.actor
    return {
        "id": ev.id,
        "user": {
            "id": actor.id if actor is not None else None,
            "name": actor.name if actor is not None else "System",
            "email": actor.email if actor is not None else None,
            "avatar": actor.image if actor is not None else None,
        },
        "action": ev.action,
        "actionType": ev.action_type,
        "icon": ev.icon,
        "entityType": ev.entity_type,
        "entityId": ev.entity_id,
        "timestamp": ev.created_at,
        "metadata": {
            "ipAddress": ev.ip_address,
            "userAgent": ev.user_agent,
            "details": json.loads(ev.details) if ev.details else None,
        },
    }


def activity_logs(
    db: Session,
    *,
    company_id: Optional[int],
    page: int,
    limit: int,
    search: Optional[str] = None,
    action_type: str = "all",
    date_filter: str = "all",
) -> dict[str, Any]:
    cid = _require_company(company_id)
    if action_type != "all" and action_type not in ACTION_TYPES:
        raise ValidationError(f"actionType must be one of all, {', '.join(ACTION_TYPES)}")
    if date_filter not in DATE_FILTERS:
        raise ValidationError(f"dateFilter must be one of {', '.join(DATE_FILTERS)}")

    conds = [ActivityEvent.company_id == cid]
    if action_type != "all":
        conds.append(ActivityEvent.action_type == action_type)
    since = date_filter_start(date_filter)
    if since is not None:
        conds.append(ActivityEvent.created_at >= since)

    q = select(ActivityEvent).outerjoin(User, User.id == ActivityEvent.actor_user_id).where(*conds)
    term = (search or "").strip()
    if term:
        q = q.where(
            or_(
                ilike_contains(User.name, term),
                ilike_contains(User.email, term),
                ilike_contains(ActivityEvent.action, term),
            )
        )

    total = int(db.scalar(select(func.count()).select_from(q.subquery())) or 0)
    offset = (page - 1) * limit
    rows = list(
        db.scalars(
            q.options(selectinload(ActivityEvent.actor))
            .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
    )

    return {
        "activities": [_activity_view(ev) for ev in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
            "hasMore": offset + len(rows) < total,
        },
    }

# backend/plotbook/routers/team.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, require_team_admin
from ..config import settings
from ..db import get_db
from ..schemas import PermissionsPatch, TeamStatsOut
from ..services import team as team_service

router = APIRouter(prefix="/team", tags=["team"])


@router.get("/members", response_model=dict)
def members(db: Session = Depends(get_db), p: Principal = Depends(require_team_admin)):
    rows = team_service.list_members(db, company_id=p.company_id)
    return {"members": [team_service.member_view(u) for u in rows]}


@router.patch("/members/{member_id}/permissions", response_model=dict)
def update_member_permissions(
    member_id: int,
    payload: PermissionsPatch,
    request: Request,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_team_admin),
):
    # only the keys the client actually sent
    changes = payload.model_dump(exclude_unset=True, by_alias=False)
    member = team_service.update_permissions(
        db,
        actor_id=p.user_id,
        company_id=p.company_id,
        member_id=member_id,
        changes=changes,
        request=request,
    )
    return {
        "success": True,
        "member": {
            "id": member.id,
            "name": member.name,
            "email": member.email,
            "canAccessDashboard": bool(member.can_access_dashboard),
            "canAccessSavedProperties": bool(member.can_access_saved_properties),
            "canAccessTeamManagement": bool(member.can_access_team_management),
        },
    }


@router.get("/stats", response_model=TeamStatsOut)
def stats(db: Session = Depends(get_db), p: Principal = Depends(require_team_admin)):
    return TeamStatsOut(**team_service.team_stats(db, company_id=p.company_id))


@router.get("/roles", response_model=dict)
def roles(db: Session = Depends(get_db), p: Principal = Depends(require_team_admin)):
    return {"roles": team_service.roles_with_counts(db, company_id=p.company_id)}


@router.get("/activity-logs", response_model=dict)
def activity_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.activity_default_limit, ge=1, le=settings.activity_max_limit),
    search: Optional[str] = Query(default=None),
    action_type: str = Query(default="all", alias="actionType"),
    date_filter: str = Query(default="all", alias="dateFilter"),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_team_admin),
):
    return team_service.activity_logs(
        db,
        company_id=p.company_id,
        page=page,
        limit=limit,
        search=search,
        action_type=action_type,
        date_filter=date_filter,
    )

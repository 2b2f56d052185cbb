# backend/plotbook/routers/user.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth import Principal, get_current_user, get_principal
from ..db import get_db
from ..domain.property_views import saved_property_view
from ..models import User
from ..schemas import CheckPermissionIn, TokenIn
from ..services.invitations import redeem_invitation
from ..services.saved_properties import saved_summary

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/check-permission", response_model=dict)
def check_permission(payload: CheckPermissionIn, p: Principal = Depends(get_principal)):
    # unknown names are simply not granted
    return {"hasPermission": p.has_permission(payload.permission)}


@router.post("/complete-invitation-signup", response_model=dict)
def complete_invitation_signup(
    payload: TokenIn,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Links the signed-in user (never a client-supplied id) to the invitation's company."""
    redeem_invitation(db, token=payload.token, user=user, expected_email=user.email, request=request)
    db.commit()
    db.refresh(user)
    return {
        "message": "Invitation completed successfully",
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "companyId": user.company_id,
            "canAccessDashboard": bool(user.can_access_dashboard),
            "canAccessSavedProperties": bool(user.can_access_saved_properties),
            "canAccessTeamManagement": bool(user.can_access_team_management),
        },
    }


@router.get("/saved-properties", response_model=dict)
def saved_properties(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    count, recent = saved_summary(db, user_id=p.user_id)
    return {"count": count, "recentProperties": [saved_property_view(sp) for sp in recent]}

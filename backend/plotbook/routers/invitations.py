# backend/plotbook/routers/invitations.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, get_optional_principal, require_admin
from ..db import get_db
from ..models import User
from ..schemas import InvitationCreate, InvitationValidOut, TokenIn
from ..services.invitations import create_invitation, redeem_invitation, validate_invitation

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("")
def invite(
    payload: InvitationCreate,
    request: Request,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    admin = db.get(User, p.user_id)
    result = create_invitation(db, admin=admin, email=payload.email, request=request)

    out: dict[str, Any] = {
        "message": "Invitation sent successfully" if result.email_sent else "Invitation created",
        "emailSent": result.email_sent,
        "invitationId": result.invitation.id,
    }
    if result.warning:
        out["warning"] = result.warning
    return out


@router.get("/validate", response_model=InvitationValidOut)
def validate(token: str = Query(default=""), db: Session = Depends(get_db)):
    inv = validate_invitation(db, token=token)
    return InvitationValidOut(email=inv.email, expires=inv.expires)


@router.post("/accept")
def accept(
    payload: TokenIn,
    request: Request,
    db: Session = Depends(get_db),
    p: Optional[Principal] = Depends(get_optional_principal),
):
    # A signed-in caller joins the company; an anonymous accept only flips the state.
    user = db.get(User, p.user_id) if p is not None else None
    redeem_invitation(
        db,
        token=payload.token,
        user=user,
        expected_email=user.email if user is not None else None,
        request=request,
    )
    db.commit()
    return {"message": "Invitation accepted successfully"}

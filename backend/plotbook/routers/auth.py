# backend/plotbook/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import settings
from ..db import get_db
from ..models import User
from ..schemas import CheckUserIn, LoginIn, MeOut, SignupIn
from ..services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        secure=bool(settings.session_cookie_secure),
        samesite=str(settings.session_cookie_samesite),
        max_age=int(settings.session_exp_minutes) * 60,
        path="/",
    )


@router.post("/signup")
def signup(payload: SignupIn, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    payload: { email, password, name?, companyName?, token? }
    With `token` the user joins the inviting company; otherwise a new company is created.
    """
    user = auth_service.signup(
        db,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        company_name=payload.company_name,
        token=payload.token,
        request=request,
    )
    token = auth_service.create_session_token(user)
    _set_session_cookie(response, token)
    return {"ok": True, "userId": user.id, "companyId": user.company_id, "role": user.role, "token": token}


@router.post("/login")
def login(payload: LoginIn, request: Request, response: Response, db: Session = Depends(get_db)):
    user = auth_service.login(db, email=payload.email, password=payload.password, request=request)
    token = auth_service.create_session_token(user)
    _set_session_cookie(response, token)
    return {"ok": True, "userId": user.id, "role": user.role, "token": token}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"ok": True}


@router.get("/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)):
    return MeOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        companyId=user.company_id,
        canAccessDashboard=bool(user.can_access_dashboard),
        canAccessSavedProperties=bool(user.can_access_saved_properties),
        canAccessTeamManagement=bool(user.can_access_team_management),
    )


@router.post("/check-user")
def check_user(payload: CheckUserIn, db: Session = Depends(get_db)):
    return {"exists": auth_service.user_exists(db, payload.email)}

# backend/plotbook/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .errors import AuthenticationRequired, AuthorizationDenied
from .middleware.request_context import bind_principal
from .models import User
from .services.auth_service import decode_session_token

log = logging.getLogger(__name__)


# client-facing permission name -> User column
PERMISSION_FLAGS: dict[str, str] = {
    "canAccessDashboard": "can_access_dashboard",
    "canAccessSavedProperties": "can_access_saved_properties",
    "canAccessTeamManagement": "can_access_team_management",
}


@dataclass(frozen=True)
class Principal:
    """
    The caller, as currently stored. Built from a fresh User row on every
    request; nothing here comes from session claims except the user id.
    """

    user_id: int
    email: str
    name: str
    role: str  # user | admin
    company_id: int | None
    can_access_dashboard: bool
    can_access_saved_properties: bool
    can_access_team_management: bool

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def has_permission(self, flag: str) -> bool:
        col = PERMISSION_FLAGS.get(flag)
        return bool(getattr(self, col)) if col else False

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=int(user.id),
            email=str(user.email),
            name=str(user.name or ""),
            role=str(user.role),
            company_id=int(user.company_id) if user.company_id is not None else None,
            can_access_dashboard=bool(user.can_access_dashboard),
            can_access_saved_properties=bool(user.can_access_saved_properties),
            can_access_team_management=bool(user.can_access_team_management),
        )


def _session_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name) if settings.session_cookie_name else None
    if not token and authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()
    return token or None


def get_session_claims(
    request: Request,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Optional[dict[str, Any]]:
    """Decoded claims, or None when no session was presented. Bad tokens raise 401."""
    token = _session_token(request, authorization)
    if not token:
        return None
    return decode_session_token(token)


def _load_user(db: Session, claims: dict[str, Any]) -> User:
    sub = str(claims.get("sub") or "")
    if not sub.isdigit():
        raise AuthenticationRequired("Session missing subject")
    user = db.scalar(select(User).where(User.id == int(sub)))
    if user is None:
        raise AuthenticationRequired("Unknown user")
    bind_principal(user_id=int(user.id), company_id=user.company_id)
    return user


def get_principal(
    db: Session = Depends(get_db),
    claims: Optional[dict[str, Any]] = Depends(get_session_claims),
) -> Principal:
    if claims is None:
        raise AuthenticationRequired()
    return Principal.from_user(_load_user(db, claims))


def get_optional_principal(
    db: Session = Depends(get_db),
    claims: Optional[dict[str, Any]] = Depends(get_session_claims),
) -> Optional[Principal]:
    """Anonymous callers get None; a presented-but-invalid session is still 401."""
    if claims is None:
        return None
    return Principal.from_user(_load_user(db, claims))


def get_current_user(
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
) -> User:
    user = db.get(User, p.user_id)
    if user is None:
        raise AuthenticationRequired("Unknown user")
    return user


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_admin:
        raise AuthorizationDenied("Forbidden: Admin access required")
    return p


def require_feature(flag: str) -> Callable[..., Principal]:
    col = PERMISSION_FLAGS[flag]

    def _dep(p: Principal = Depends(get_principal)) -> Principal:
        if not getattr(p, col):
            log.info("permission_denied", extra={"user_id": p.user_id, "permission": flag})
            raise AuthorizationDenied(f"Forbidden: {flag} is not granted")
        return p

    return _dep


require_saved_properties = require_feature("canAccessSavedProperties")


def require_team_admin(p: Principal = Depends(require_admin)) -> Principal:
    if not p.can_access_team_management:
        raise AuthorizationDenied("Forbidden: team management access required")
    return p

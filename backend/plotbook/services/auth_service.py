# backend/plotbook/services/auth_service.py
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt  # PyJWT

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.activity import record_activity
from ..errors import AuthenticationRequired, Conflict, ValidationError
from ..models import Company, User
from .invitations import redeem_invitation

log = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.utcnow()


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


# -------------------------
# Passwords
# -------------------------
def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    iters = int(os.getenv("AUTH_PBKDF2_ITERS", "210000"))
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return f"pbkdf2_sha256${iters}${base64.b64encode(salt).decode()}${base64.b64encode(dk).decode()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        algo, iters_s, salt_b64, dk_b64 = stored.split("$", 3)
        iters = int(iters_s)
        salt = base64.b64decode(salt_b64.encode())
        dk = base64.b64decode(dk_b64.encode())
    except ValueError:
        return False
    if algo != "pbkdf2_sha256":
        return False
    test = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return hmac.compare_digest(test, dk)


# -------------------------
# Session tokens
# -------------------------
def create_session_token(user: User, *, minutes: Optional[int] = None) -> str:
    """
    Claims mirror the user row at issue time. They are informational only:
    every authorization decision reloads the user from the database.
    """
    now = _now()
    ttl = int(minutes if minutes is not None else settings.session_exp_minutes)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "companyId": user.company_id,
        "canAccessDashboard": bool(user.can_access_dashboard),
        "canAccessSavedProperties": bool(user.can_access_saved_properties),
        "canAccessTeamManagement": bool(user.can_access_team_management),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Session expired")
    except jwt.InvalidTokenError:
        raise AuthenticationRequired("Invalid session")


# -------------------------
# Signup / login
# -------------------------
def user_exists(db: Session, email: str) -> bool:
    return db.scalar(select(User.id).where(User.email == normalize_email(email))) is not None


def signup(
    db: Session,
    *,
    email: str,
    password: str,
    name: Optional[str] = None,
    company_name: Optional[str] = None,
    token: Optional[str] = None,
    request: Optional[Request] = None,
) -> User:
    """
    Without an invitation token the user founds a new company and becomes its
    admin with every feature enabled. With a token the invitation is redeemed
    and the user joins the inviting company as a regular member.
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("email and password are required")
    if len(password) < 8:
        raise ValidationError("password must be at least 8 characters")
    if user_exists(db, email):
        raise Conflict("User already exists")

    user = User(
        email=email,
        name=(name or "").strip() or email.split("@")[0],
        password_hash=hash_password(password),
        created_at=_now(),
        updated_at=_now(),
    )

    if token:
        db.add(user)
        db.flush()
        redeem_invitation(db, token=token, user=user, expected_email=email, request=request)
    else:
        company = Company(name=(company_name or "").strip() or f"{user.name}'s Company", created_at=_now())
        db.add(company)
        db.flush()
        user.company_id = int(company.id)
        user.role = "admin"
        user.can_access_dashboard = True
        user.can_access_saved_properties = True
        user.can_access_team_management = True
        db.add(user)
        db.flush()

    record_activity(
        db,
        company_id=user.company_id,
        actor_user_id=int(user.id),
        action="User signed up",
        entity_type="user",
        entity_id=user.id,
        details={"viaInvitation": bool(token)},
        request=request,
    )
    db.commit()
    db.refresh(user)
    log.info("user_signed_up", extra={"user_id": user.id, "company_id": user.company_id})
    return user


def login(db: Session, *, email: str, password: str, request: Optional[Request] = None) -> User:
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError("email and password are required")

    user = db.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationRequired("Invalid credentials")

    user.last_login_at = _now()
    record_activity(
        db,
        company_id=user.company_id,
        actor_user_id=int(user.id),
        action="User logged in",
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    db.commit()
    db.refresh(user)
    return user

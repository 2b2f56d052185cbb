# backend/plotbook/services/invitations.py
"""
Invitation lifecycle: pending -> accepted. "expired" is derived from `expires`.

redeem_invitation() is the only place an invitation changes state. It flips
the row with one conditional UPDATE so two concurrent redemptions of the same
token cannot both succeed, then optionally links a user to the company.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Request
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..clients.resend import ResendClient, invitation_email_html
from ..config import settings
from ..domain.activity import record_activity
from ..errors import Conflict, NotFound, UpstreamFailure, ValidationError
from ..models import Invitation, User

log = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"

MSG_NOT_FOUND = "Invalid invitation token"
MSG_EXPIRED = "Invitation has expired"
MSG_USED = "Invitation has already been used"


def _now() -> datetime:
    return datetime.utcnow()


@dataclass(frozen=True)
class InvitationResult:
    invitation: Invitation
    email_sent: bool
    warning: Optional[str] = None


def _failure(inv: Optional[Invitation], now: datetime) -> Exception:
    if inv is None:
        return NotFound(MSG_NOT_FOUND)
    if inv.expires <= now:
        return ValidationError(MSG_EXPIRED)
    if inv.status != PENDING:
        return ValidationError(MSG_USED)
    # pending and unexpired but the update still missed: lost a race
    return ValidationError(MSG_USED)


def invitation_url(token: str) -> str:
    return f"{settings.app_url.rstrip('/')}/signup?token={token}"


def create_invitation(
    db: Session,
    *,
    admin: User,
    email: str,
    request: Optional[Request] = None,
    mailer: Optional[ResendClient] = None,
) -> InvitationResult:
    email = str(email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Email is required")
    if admin.company_id is None:
        raise ValidationError("Admin is not associated with a company")

    if db.scalar(select(Invitation.id).where(Invitation.email == email)) is not None:
        raise Conflict("An invitation for this email already exists")
    if db.scalar(select(User.id).where(User.email == email)) is not None:
        raise Conflict("A user with this email already exists")

    now = _now()
    inv = Invitation(
        email=email,
        token=secrets.token_hex(32),
        expires=now + timedelta(days=int(settings.invitation_ttl_days)),
        status=PENDING,
        invited_by=int(admin.id),
        company_id=int(admin.company_id),
        created_at=now,
        updated_at=now,
    )
    db.add(inv)
    try:
        db.flush()
    except IntegrityError:
        # a concurrent invite for the same address committed after the check above
        db.rollback()
        raise Conflict("An invitation for this email already exists")

    record_activity(
        db,
        company_id=int(admin.company_id),
        actor_user_id=int(admin.id),
        action="User invited",
        entity_type="invitation",
        entity_id=inv.id,
        details={"email": email},
        request=request,
    )
    db.commit()
    db.refresh(inv)
    log.info("invitation_created", extra={"invitation_id": inv.id, "company_id": inv.company_id, "user_id": admin.id})

    # The invitation stands even when delivery fails; the admin is told.
    mailer = mailer or ResendClient()
    if not mailer.enabled():
        log.warning("invitation_email_skipped", extra={"invitation_id": inv.id, "email": email})
        return InvitationResult(inv, email_sent=False, warning="Email delivery is not configured; share the invitation link manually")

    try:
        mailer.send_email(
            to=email,
            subject="Invitation to join Plotbook",
            html=invitation_email_html(
                inviter_name=admin.name or admin.email,
                invitation_url=invitation_url(inv.token),
                ttl_days=int(settings.invitation_ttl_days),
            ),
        )
    except UpstreamFailure as e:
        log.warning("invitation_email_failed", extra={"invitation_id": inv.id, "email": email, "error": e.message})
        return InvitationResult(inv, email_sent=False, warning="Invitation created but the email could not be sent")

    return InvitationResult(inv, email_sent=True)


def validate_invitation(db: Session, *, token: str) -> Invitation:
    """Read-only check. Returns the pending, unexpired invitation or raises."""
    if not token:
        raise ValidationError("Token is required")
    inv = db.scalar(select(Invitation).where(Invitation.token == token))
    now = _now()
    if inv is None or inv.expires <= now or inv.status != PENDING:
        raise _failure(inv, now)
    return inv


def redeem_invitation(
    db: Session,
    *,
    token: str,
    user: Optional[User] = None,
    expected_email: Optional[str] = None,
    request: Optional[Request] = None,
) -> Invitation:
    """
    pending -> accepted, at most once per token.

    When `user` is given it joins the invitation's company as a regular member
    with dashboard and saved-properties access. Does not commit; the caller
    owns the transaction so the user row and the state change land together.
    """
    if not token:
        raise ValidationError("Token is required")

    inv = db.scalar(select(Invitation).where(Invitation.token == token))
    if inv is None:
        raise NotFound(MSG_NOT_FOUND)
    if expected_email is not None and inv.email != expected_email.strip().lower():
        raise ValidationError("Email does not match the invitation")

    now = _now()
    res = db.execute(
        update(Invitation)
        .where(Invitation.id == inv.id, Invitation.status == PENDING, Invitation.expires > now)
        .values(status=ACCEPTED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.refresh(inv)
    if res.rowcount != 1:
        raise _failure(inv, now)

    if user is not None:
        user.company_id = inv.company_id
        user.role = "user"
        user.can_access_dashboard = True
        user.can_access_saved_properties = True
        user.can_access_team_management = False
        db.add(user)
        db.flush()

        record_activity(
            db,
            company_id=inv.company_id,
            actor_user_id=int(user.id),
            action="Invitation accepted",
            entity_type="invitation",
            entity_id=inv.id,
            details={"email": inv.email},
            request=request,
        )

    log.info(
        "invitation_redeemed",
        extra={"invitation_id": inv.id, "company_id": inv.company_id, "user_id": user.id if user is not None else None},
    )
    return inv

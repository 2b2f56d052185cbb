from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import headers_for, mk_admin, mk_company, mk_user
from plotbook.db import SessionLocal
from plotbook.errors import UpstreamFailure
from plotbook.models import Invitation, User
from plotbook.services import invitations as invitation_service


def _invite(client, admin_id: int, email: str):
    return client.post("/api/invitations", json={"email": email}, headers=headers_for(admin_id))


def _token_for(email: str) -> str:
    db = SessionLocal()
    try:
        return db.query(Invitation).filter(Invitation.email == email).one().token
    finally:
        db.close()


def _expire(email: str) -> None:
    db = SessionLocal()
    try:
        inv = db.query(Invitation).filter(Invitation.email == email).one()
        inv.expires = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
    finally:
        db.close()


def _user(email: str) -> User:
    db = SessionLocal()
    try:
        return db.query(User).filter(User.email == email).one()
    finally:
        db.close()


def test_invite_validate_accept_then_used(client):
    admin = mk_admin(company_id=mk_company())

    r = _invite(client, admin, "New@X.com ")
    assert r.status_code == 200
    body = r.json()
    assert body["emailSent"] is False
    assert "warning" in body

    token = _token_for("new@x.com")
    r = client.get("/api/invitations/validate", params={"token": token})
    assert r.status_code == 200
    assert r.json()["email"] == "new@x.com"
    expires = datetime.fromisoformat(r.json()["expires"])
    assert timedelta(days=6, hours=23) < expires - datetime.utcnow() <= timedelta(days=7)

    r = client.post("/api/invitations/accept", json={"token": token})
    assert r.status_code == 200
    assert r.json() == {"message": "Invitation accepted successfully"}

    r = client.get("/api/invitations/validate", params={"token": token})
    assert r.status_code == 400
    assert r.json() == {"error": "Invitation has already been used"}

    r = client.post("/api/invitations/accept", json={"token": token})
    assert r.status_code == 400


def test_unknown_token_is_404(client):
    r = client.get("/api/invitations/validate", params={"token": "nope"})
    assert r.status_code == 404
    assert r.json() == {"error": "Invalid invitation token"}

    r = client.post("/api/invitations/accept", json={"token": "nope"})
    assert r.status_code == 404


def test_missing_token_is_400(client):
    assert client.get("/api/invitations/validate").status_code == 400
    assert client.post("/api/invitations/accept", json={"token": ""}).status_code == 400


def test_expired_invitation_is_rejected_before_used(client):
    admin = mk_admin(company_id=mk_company())
    _invite(client, admin, "late@x.com")
    token = _token_for("late@x.com")
    _expire("late@x.com")

    r = client.get("/api/invitations/validate", params={"token": token})
    assert r.status_code == 400
    assert r.json() == {"error": "Invitation has expired"}

    r = client.post("/api/invitations/accept", json={"token": token})
    assert r.status_code == 400
    assert r.json() == {"error": "Invitation has expired"}


def test_only_admins_invite(client):
    cid = mk_company()
    member = mk_user("m@x.com", company_id=cid)
    r = _invite(client, member, "new@x.com")
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden: Admin access required"}

    assert client.post("/api/invitations", json={"email": "new@x.com"}).status_code == 401


def test_duplicate_invitation_and_existing_user_conflict(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    mk_user("taken@x.com", company_id=cid)

    assert _invite(client, admin, "new@x.com").status_code == 200
    assert _invite(client, admin, "new@x.com").status_code == 409
    assert _invite(client, admin, "taken@x.com").status_code == 409


def test_invitation_committed_concurrently_is_409(client, monkeypatch):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    real_token_hex = invitation_service.secrets.token_hex

    def token_hex_after_competing_insert(n):
        # another request wins the race between the duplicate check and the insert
        db = SessionLocal()
        try:
            db.add(
                Invitation(
                    email="race@x.com",
                    token=real_token_hex(n),
                    expires=datetime.utcnow() + timedelta(days=7),
                    status="pending",
                    invited_by=admin,
                    company_id=cid,
                )
            )
            db.commit()
        finally:
            db.close()
        return real_token_hex(n)

    monkeypatch.setattr(invitation_service.secrets, "token_hex", token_hex_after_competing_insert)

    r = _invite(client, admin, "race@x.com")
    assert r.status_code == 409
    assert r.json() == {"error": "An invitation for this email already exists"}

    db = SessionLocal()
    try:
        assert db.query(Invitation).filter(Invitation.email == "race@x.com").count() == 1
    finally:
        db.close()


def test_demoted_admin_cannot_invite_with_old_session(client):
    admin = mk_admin(company_id=mk_company())
    headers = headers_for(admin)

    db = SessionLocal()
    try:
        db.get(User, admin).role = "user"
        db.commit()
    finally:
        db.close()

    r = client.post("/api/invitations", json={"email": "new@x.com"}, headers=headers)
    assert r.status_code == 403


def test_email_sent_when_delivery_succeeds(client, monkeypatch):
    sent = []

    class _Mailer:
        def enabled(self):
            return True

        def send_email(self, *, to, subject, html):
            sent.append((to, html))

    monkeypatch.setattr(invitation_service, "ResendClient", _Mailer)
    admin = mk_admin(company_id=mk_company())

    body = _invite(client, admin, "new@x.com").json()
    assert body["emailSent"] is True
    assert "warning" not in body
    assert sent[0][0] == "new@x.com"
    assert f"/signup?token={_token_for('new@x.com')}" in sent[0][1]


def test_delivery_failure_keeps_invitation(client, monkeypatch):
    class _Broken:
        def enabled(self):
            return True

        def send_email(self, **kw):
            raise UpstreamFailure("boom")

    monkeypatch.setattr(invitation_service, "ResendClient", _Broken)
    admin = mk_admin(company_id=mk_company())

    body = _invite(client, admin, "new@x.com").json()
    assert body["emailSent"] is False
    assert body["warning"] == "Invitation created but the email could not be sent"
    assert _token_for("new@x.com")


def test_signup_with_token_joins_inviting_company(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    _invite(client, admin, "new@x.com")
    token = _token_for("new@x.com")

    r = client.post(
        "/api/auth/signup",
        json={"email": "new@x.com", "password": "password123", "name": "New Person", "token": token},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["companyId"] == cid
    assert body["role"] == "user"

    u = _user("new@x.com")
    assert u.can_access_dashboard is True
    assert u.can_access_saved_properties is True
    assert u.can_access_team_management is False

    r = client.get("/api/invitations/validate", params={"token": token})
    assert r.json() == {"error": "Invitation has already been used"}


def test_signup_with_token_for_other_email_is_rejected(client):
    admin = mk_admin(company_id=mk_company())
    _invite(client, admin, "new@x.com")
    token = _token_for("new@x.com")

    r = client.post("/api/auth/signup", json={"email": "other@x.com", "password": "password123", "token": token})
    assert r.status_code == 400

    # nothing half-created
    db = SessionLocal()
    try:
        assert db.query(User).filter(User.email == "other@x.com").count() == 0
    finally:
        db.close()
    assert client.get("/api/invitations/validate", params={"token": token}).status_code == 200


def test_complete_invitation_signup_links_current_user(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    _invite(client, admin, "solo@x.com")
    token = _token_for("solo@x.com")
    uid = mk_user("solo@x.com")

    r = client.post("/api/user/complete-invitation-signup", json={"token": token}, headers=headers_for(uid))
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["id"] == uid
    assert user["companyId"] == cid
    assert user["role"] == "user"


def test_complete_invitation_signup_requires_session(client):
    r = client.post("/api/user/complete-invitation-signup", json={"token": "whatever"})
    assert r.status_code == 401


@pytest.mark.parametrize("redeemer", ["anonymous", "signed_in"])
def test_second_redemption_fails(client, redeemer):
    admin = mk_admin(company_id=mk_company())
    _invite(client, admin, "new@x.com")
    token = _token_for("new@x.com")
    headers = headers_for(mk_user("new@x.com")) if redeemer == "signed_in" else {}

    assert client.post("/api/invitations/accept", json={"token": token}, headers=headers).status_code == 200
    r = client.post("/api/invitations/accept", json={"token": token}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invitation has already been used"}

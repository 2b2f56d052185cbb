from __future__ import annotations

from datetime import datetime, timedelta

from conftest import headers_for, mk_admin, mk_company, mk_user, set_user
from plotbook.services.team import member_status


def _patch(client, actor, member, body):
    return client.patch(f"/api/team/members/{member}/permissions", json=body, headers=headers_for(actor))


def test_member_status_windows():
    now = datetime(2026, 10, 1, 12, 0, 0)
    assert member_status(now - timedelta(hours=23), now=now) == "active"
    assert member_status(now - timedelta(days=1), now=now) == "active"
    assert member_status(now - timedelta(days=10), now=now) == "inactive"
    assert member_status(now - timedelta(days=31), now=now) == "pending"


def test_team_routes_need_admin_with_team_flag(client):
    cid = mk_company()
    member = mk_user("m@x.com", company_id=cid, team=True)
    admin_without_flag = mk_admin("a2@x.com", company_id=cid, team=False)

    assert client.get("/api/team/members").status_code == 401
    assert client.get("/api/team/members", headers=headers_for(member)).status_code == 403
    assert client.get("/api/team/members", headers=headers_for(admin_without_flag)).status_code == 403


def test_revoked_team_flag_wins_over_old_session(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    headers = headers_for(admin)
    set_user(admin, can_access_team_management=False)

    r = client.get("/api/team/members", headers=headers)
    assert r.status_code == 403


def test_admin_without_company_gets_400(client):
    admin = mk_admin(company_id=None)
    r = client.get("/api/team/members", headers=headers_for(admin))
    assert r.status_code == 400
    assert r.json() == {"error": "User not associated with a company"}


def test_members_are_company_scoped_with_status(client):
    cid = mk_company()
    other = mk_company("Other Co")
    admin = mk_admin(company_id=cid)
    mk_user("old@x.com", company_id=cid, updated_at=datetime.utcnow() - timedelta(days=45))
    mk_user("outsider@x.com", company_id=other)

    members = client.get("/api/team/members", headers=headers_for(admin)).json()["members"]
    by_email = {m["email"]: m for m in members}
    assert set(by_email) == {"admin@acme.test", "old@x.com"}
    assert by_email["admin@acme.test"]["status"] == "active"
    assert by_email["old@x.com"]["status"] == "pending"
    assert by_email["old@x.com"]["company"] == {"name": "Acme Realty"}


def test_patch_changes_only_sent_flags(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    member = mk_user("m@x.com", company_id=cid, dashboard=True, saved=True)

    r = _patch(client, admin, member, {"canAccessDashboard": False})
    assert r.status_code == 200
    m = r.json()["member"]
    assert m["canAccessDashboard"] is False
    assert m["canAccessSavedProperties"] is True
    assert m["canAccessTeamManagement"] is False


def test_patch_rejects_non_boolean_and_empty(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    member = mk_user("m@x.com", company_id=cid)

    assert _patch(client, admin, member, {"canAccessDashboard": "yes"}).status_code == 400
    assert _patch(client, admin, member, {"canAccessDashboard": 1}).status_code == 400
    assert _patch(client, admin, member, {}).status_code == 400


def test_patch_other_company_member_is_404(client):
    admin = mk_admin(company_id=mk_company())
    outsider = mk_user("o@x.com", company_id=mk_company("Other Co"))

    r = _patch(client, admin, outsider, {"canAccessDashboard": False})
    assert r.status_code == 404
    assert r.json() == {"error": "Member not found or access denied"}


def test_admin_cannot_revoke_own_team_access(client):
    admin = mk_admin(company_id=mk_company())
    r = _patch(client, admin, admin, {"canAccessTeamManagement": False})
    assert r.status_code == 400
    assert client.get("/api/team/members", headers=headers_for(admin)).status_code == 200


def test_revoked_dashboard_takes_effect_immediately(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    member = mk_user("m@x.com", company_id=cid)
    member_headers = headers_for(member)

    assert client.get("/api/dashboard/stats", headers=member_headers).status_code == 200
    _patch(client, admin, member, {"canAccessDashboard": False})
    assert client.get("/api/dashboard/stats", headers=member_headers).status_code == 403


def test_stats(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    mk_user("m1@x.com", company_id=cid)
    mk_user("m2@x.com", company_id=cid, updated_at=datetime.utcnow() - timedelta(days=60))
    client.post("/api/invitations", json={"email": "new@x.com"}, headers=headers_for(admin))

    r = client.get("/api/team/stats", headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json() == {"totalMembers": 3, "activeMembers": 2, "pendingInvitations": 1, "totalRoles": 2}


def test_roles_carry_company_user_counts(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    mk_user("m1@x.com", company_id=cid)
    mk_user("m2@x.com", company_id=cid)
    mk_user("elsewhere@x.com", company_id=mk_company("Other Co"))

    roles = client.get("/api/team/roles", headers=headers_for(admin)).json()["roles"]
    counts = {r["id"]: r["userCount"] for r in roles}
    assert counts["admin"] == 1
    assert counts["user"] == 2
    assert counts["manager"] == 0
    assert [r["id"] for r in roles] == ["admin", "manager", "engineer", "designer", "analyst", "user"]

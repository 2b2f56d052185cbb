from __future__ import annotations

from datetime import datetime, timedelta

from conftest import headers_for, mk_admin, mk_company, mk_geo, mk_property, mk_user
from plotbook.db import SessionLocal
from plotbook.domain.activity import date_filter_start, record_activity
from plotbook.models import ActivityEvent


def _logs(client, admin, **params):
    r = client.get("/api/team/activity-logs", params=params, headers=headers_for(admin))
    assert r.status_code == 200, r.text
    return r.json()


def _seed_activity(client):
    cid = mk_company()
    admin = mk_admin(company_id=cid)
    mk_user("agent@x.com", company_id=cid, name="Agent Smith", password="password123")

    client.post("/api/auth/login", json={"email": "agent@x.com", "password": "password123"})
    client.cookies.clear()

    agent = mk_user("agent2@x.com", company_id=cid, name="Dana Field")
    pid = mk_property(mk_geo(), "1 Main St")
    client.post("/api/properties/save", json={"propertyId": pid}, headers=headers_for(agent))
    client.post("/api/invitations", json={"email": "new@x.com"}, headers=headers_for(admin))
    return cid, admin


def test_events_are_recorded_and_classified(client):
    _, admin = _seed_activity(client)

    body = _logs(client, admin)
    by_action = {a["action"]: a for a in body["activities"]}
    assert set(by_action) == {"User logged in", "Property saved", "User invited"}
    assert by_action["User logged in"]["actionType"] == "auth"
    assert by_action["Property saved"]["actionType"] == "data"
    assert by_action["Property saved"]["user"]["name"] == "Dana Field"
    assert by_action["User invited"]["actionType"] == "admin"
    assert by_action["User invited"]["icon"] == "mail"
    assert by_action["User invited"]["metadata"]["details"] == {"email": "new@x.com"}
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["hasMore"] is False


def test_newest_first_and_paged(client):
    _, admin = _seed_activity(client)

    body = _logs(client, admin, limit=2)
    assert [a["action"] for a in body["activities"]] == ["User invited", "Property saved"]
    assert body["pagination"]["hasMore"] is True
    assert body["pagination"]["totalPages"] == 2

    body = _logs(client, admin, limit=2, page=2)
    assert [a["action"] for a in body["activities"]] == ["User logged in"]
    assert body["pagination"]["hasMore"] is False


def test_filter_by_action_type_and_search(client):
    _, admin = _seed_activity(client)

    body = _logs(client, admin, actionType="auth")
    assert [a["action"] for a in body["activities"]] == ["User logged in"]

    body = _logs(client, admin, search="dana")
    assert [a["action"] for a in body["activities"]] == ["Property saved"]

    body = _logs(client, admin, search="invited")
    assert [a["action"] for a in body["activities"]] == ["User invited"]


def test_search_wildcards_match_literally(client):
    _, admin = _seed_activity(client)

    assert _logs(client, admin, search="_")["pagination"]["total"] == 0
    assert _logs(client, admin, search="%")["pagination"]["total"] == 0
    assert _logs(client, admin, search="logged%in")["pagination"]["total"] == 0
    assert _logs(client, admin, search="logged in")["pagination"]["total"] == 1


def test_date_filter_excludes_old_events(client):
    cid, admin = _seed_activity(client)

    db = SessionLocal()
    try:
        ev = record_activity(db, company_id=cid, actor_user_id=None, action="Nightly import")
        db.flush()
        ev.created_at = datetime.utcnow() - timedelta(days=20)
        db.commit()
    finally:
        db.close()

    assert _logs(client, admin, dateFilter="all")["pagination"]["total"] == 4
    assert _logs(client, admin, dateFilter="month")["pagination"]["total"] == 4
    assert _logs(client, admin, dateFilter="week")["pagination"]["total"] == 3

    system = _logs(client, admin, actionType="system")["activities"]
    assert system[0]["user"]["name"] == "System"
    assert system[0]["icon"] == "activity"


def test_other_companies_are_invisible(client):
    _seed_activity(client)
    outsider = mk_admin("boss@other.test", company_id=mk_company("Other Co"))

    body = _logs(client, outsider)
    assert body["activities"] == []
    assert body["pagination"]["total"] == 0


def test_bad_filters_are_400(client):
    admin = mk_admin(company_id=mk_company())
    h = headers_for(admin)
    assert client.get("/api/team/activity-logs", params={"actionType": "bogus"}, headers=h).status_code == 400
    assert client.get("/api/team/activity-logs", params={"dateFilter": "decade"}, headers=h).status_code == 400


def test_date_filter_bounds():
    now = datetime(2026, 10, 15, 14, 30)
    assert date_filter_start("today", now=now) == datetime(2026, 10, 15)
    assert date_filter_start("week", now=now) == datetime(2026, 10, 8, 14, 30)
    assert date_filter_start("month", now=now) == datetime(2026, 9, 15, 14, 30)
    assert date_filter_start("all", now=now) is None


def test_events_are_stored_with_company(db, client):
    _seed_activity(client)
    assert db.query(ActivityEvent).filter(ActivityEvent.company_id.is_(None)).count() == 0


def test_record_activity_joins_the_callers_transaction(db):
    cid = mk_company()

    session = SessionLocal()
    try:
        record_activity(session, company_id=cid, actor_user_id=None, action="Nightly import")
        session.rollback()
    finally:
        session.close()

    assert db.query(ActivityEvent).filter(ActivityEvent.company_id == cid).count() == 0

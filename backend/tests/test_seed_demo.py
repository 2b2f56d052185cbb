from __future__ import annotations

from plotbook.cli.seed_demo import PROPERTIES, seed_demo
from plotbook.models import Property, State, User


def test_seed_is_idempotent(db):
    first = seed_demo(admin_email="Admin@Demo.test", admin_password="password123")
    assert first.properties == len(PROPERTIES)

    second = seed_demo(admin_email="admin@demo.test", admin_password="password123")
    assert second.properties == 0
    assert second.company_id == first.company_id

    assert db.query(Property).count() == len(PROPERTIES)
    assert db.query(State).count() == first.states
    assert db.query(User).filter(User.email == "admin@demo.test").count() == 1


def test_seeded_admin_can_sign_in_and_search(client):
    seed_demo(admin_email="admin@demo.test", admin_password="password123")

    r = client.post("/api/auth/login", json={"email": "admin@demo.test", "password": "password123"})
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    body = client.get("/api/properties/locations", params={"state": "TX"}).json()
    assert body["total"] > 0
    assert all(p["stateCode"] == "TX" for p in body["properties"])

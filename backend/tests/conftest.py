# backend/tests/conftest.py
from __future__ import annotations

import json
import os
import tempfile
from datetime import date, datetime
from typing import Optional

import pytest

# Settings are read at import time; point them at a throwaway database first.
_TMP = tempfile.mkdtemp(prefix="plotbook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["APP_ENV"] = "test"
os.environ["RESEND_API_KEY"] = ""
os.environ.setdefault("AUTH_PBKDF2_ITERS", "1000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from plotbook.db import Base, SessionLocal, engine  # noqa: E402
from plotbook import models  # noqa: E402,F401
from plotbook.main import create_app  # noqa: E402
from plotbook.models import (  # noqa: E402
    City,
    Company,
    County,
    Owner,
    Property,
    PropertyOwnership,
    PropertyTransaction,
    State,
    User,
)
from plotbook.services.auth_service import create_session_token, hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture()
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


# -----------------------------
# Factories
# -----------------------------
def mk_company(name: str = "Acme Realty") -> int:
    db = SessionLocal()
    try:
        c = Company(name=name)
        db.add(c)
        db.commit()
        db.refresh(c)
        return int(c.id)
    finally:
        db.close()


def mk_user(
    email: str,
    *,
    company_id: Optional[int] = None,
    role: str = "user",
    name: Optional[str] = None,
    password: str = "password123",
    dashboard: bool = True,
    saved: bool = True,
    team: bool = False,
    updated_at: Optional[datetime] = None,
) -> int:
    db = SessionLocal()
    try:
        u = User(
            email=email,
            name=name or email.split("@")[0],
            password_hash=hash_password(password),
            company_id=company_id,
            role=role,
            can_access_dashboard=dashboard,
            can_access_saved_properties=saved,
            can_access_team_management=team,
        )
        if updated_at is not None:
            u.updated_at = updated_at
        db.add(u)
        db.commit()
        db.refresh(u)
        return int(u.id)
    finally:
        db.close()


def mk_admin(email: str = "admin@acme.test", *, company_id: Optional[int] = None, team: bool = True) -> int:
    return mk_user(email, company_id=company_id, role="admin", team=team)


def set_user(user_id: int, **fields) -> None:
    db = SessionLocal()
    try:
        u = db.get(User, user_id)
        for k, v in fields.items():
            setattr(u, k, v)
        db.commit()
    finally:
        db.close()


def headers_for(user_id: int) -> dict[str, str]:
    db = SessionLocal()
    try:
        u = db.get(User, user_id)
        return {"Authorization": f"Bearer {create_session_token(u)}"}
    finally:
        db.close()


def mk_geo(state: str = "California", code: str = "CA", city: str = "Los Angeles") -> tuple[int, int, int]:
    """Returns (state_id, county_id, city_id), reusing the state if it exists."""
    db = SessionLocal()
    try:
        st = db.query(State).filter(State.code == code).one_or_none()
        if st is None:
            st = State(name=state, code=code, region="West")
            db.add(st)
            db.flush()
        county = County(state_id=st.id, name=f"{city} County", population=1000000, median_income=75000.0)
        db.add(county)
        db.flush()
        ct = City(
            state_id=st.id,
            county_id=county.id,
            name=city,
            population=500000,
            median_income=70000.0,
            zip_codes_json=json.dumps(["90001", "90002"]),
        )
        db.add(ct)
        db.commit()
        return int(st.id), int(county.id), int(ct.id)
    finally:
        db.close()


def mk_property(
    geo: tuple[int, int, int],
    address: str,
    *,
    property_type: str = "Single Family",
    current_value: Optional[float] = 500000.0,
    square_footage: Optional[int] = 1500,
    bedrooms: Optional[int] = 3,
    bathrooms: Optional[float] = 2.0,
    year_built: Optional[int] = 1990,
    **extra,
) -> int:
    state_id, county_id, city_id = geo
    db = SessionLocal()
    try:
        p = Property(
            state_id=state_id,
            county_id=county_id,
            city_id=city_id,
            address=address,
            property_type=property_type,
            current_value=current_value,
            square_footage=square_footage,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            year_built=year_built,
            **extra,
        )
        db.add(p)
        db.commit()
        db.refresh(p)
        return int(p.id)
    finally:
        db.close()


def mk_owner(
    *,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    entity_name: Optional[str] = None,
    **extra,
) -> int:
    db = SessionLocal()
    try:
        o = Owner(
            type="entity" if entity_name is not None else "individual",
            first_name=first_name,
            last_name=last_name,
            entity_name=entity_name,
            **extra,
        )
        db.add(o)
        db.commit()
        db.refresh(o)
        return int(o.id)
    finally:
        db.close()


def mk_ownership(property_id: int, owner_id: int, *, percent: float = 100.0, active: bool = True) -> int:
    db = SessionLocal()
    try:
        o = PropertyOwnership(
            property_id=property_id,
            owner_id=owner_id,
            ownership_percent=percent,
            ownership_type="fee_simple",
            is_active=active,
        )
        db.add(o)
        db.commit()
        db.refresh(o)
        return int(o.id)
    finally:
        db.close()


def mk_transaction(property_id: int, amount: float, on: date, *, buyer_id: Optional[int] = None) -> int:
    db = SessionLocal()
    try:
        t = PropertyTransaction(
            property_id=property_id,
            buyer_id=buyer_id,
            transaction_type="sale",
            amount=amount,
            transaction_date=on,
        )
        db.add(t)
        db.commit()
        db.refresh(t)
        return int(t.id)
    finally:
        db.close()

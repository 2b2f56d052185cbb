# backend/plotbook/cli/seed_demo.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from plotbook.db import SessionLocal, init_db
from plotbook.models import (
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
from plotbook.services.auth_service import hash_password


@dataclass(frozen=True)
class SeedResult:
    company_id: int
    admin_email: str
    states: int
    properties: int


# (name, code, region, [(county, fips, [(city, lat, lng, zips)])])
GEOGRAPHY = [
    (
        "California",
        "CA",
        "West",
        [
            ("Los Angeles County", "06037", [("Los Angeles", 34.0522, -118.2437, ["90012", "90026"])]),
            ("San Francisco County", "06075", [("San Francisco", 37.7749, -122.4194, ["94103", "94110"])]),
        ],
    ),
    (
        "Texas",
        "TX",
        "South",
        [
            ("Travis County", "48453", [("Austin", 30.2672, -97.7431, ["78701", "78704"])]),
        ],
    ),
    (
        "New York",
        "NY",
        "Northeast",
        [
            ("New York County", "36061", [("New York", 40.7128, -74.0060, ["10001", "10011"])]),
        ],
    ),
]

# (first, last, entity_name, entity_type, occupation, net_worth)
OWNERS = [
    ("John", "Smith", None, None, "Software Engineer", 2_400_000.0),
    ("Maria", "Garcia", None, None, "Physician", 5_100_000.0),
    (None, "Chen", None, None, None, None),
    (None, None, "Blue Harbor Holdings LLC", "llc", None, 48_000_000.0),
    (None, None, "Lone Star Realty Trust", "trust", None, 12_500_000.0),
]

# (city, address, type, year, sqft, beds, baths, value, owner indexes)
PROPERTIES = [
    ("Los Angeles", "1200 Sunset Blvd", "Single Family", 1962, 2400, 4, 3.0, 2_350_000.0, [0]),
    ("Los Angeles", "455 Echo Park Ave", "Condo", 2008, 980, 2, 2.0, 815_000.0, [2]),
    ("San Francisco", "88 Valencia St", "Townhouse", 1915, 1850, 3, 2.5, 1_975_000.0, [1, 0]),
    ("San Francisco", "1 Market St", "Commercial", 1998, 120000, None, None, 3_200_000_000.0, [3]),
    ("Austin", "700 Congress Ave", "Condo", 2015, 1100, 2, 2.0, 640_000.0, [4]),
    ("Austin", "2300 S Lamar Blvd", "Single Family", 1978, 1600, 3, 2.0, 525_000.0, []),
    ("New York", "221 W 17th St", "Condo", 1925, 1300, 2, 1.0, 1_450_000.0, [1]),
]


def _get_or_create_state(db: Session, name: str, code: str, region: str) -> State:
    row = db.scalar(select(State).where(State.code == code))
    if row:
        return row
    row = State(name=name, code=code, region=region)
    db.add(row)
    db.flush()
    return row


def _get_or_create_county(db: Session, state: State, name: str, fips: str) -> County:
    row = db.scalar(select(County).where(County.fips_code == fips))
    if row:
        return row
    row = County(state_id=state.id, name=name, fips_code=fips)
    db.add(row)
    db.flush()
    return row


def _get_or_create_city(db: Session, state: State, county: County, name: str, lat: float, lng: float, zips: list[str]) -> City:
    row = db.scalar(select(City).where(City.state_id == state.id, City.name == name))
    if row:
        return row
    row = City(
        state_id=state.id,
        county_id=county.id,
        name=name,
        latitude=lat,
        longitude=lng,
        zip_codes_json=json.dumps(zips),
    )
    db.add(row)
    db.flush()
    return row


def _get_or_create_company(db: Session, name: str) -> Company:
    row = db.scalar(select(Company).where(Company.name == name))
    if row:
        return row
    row = Company(name=name)
    db.add(row)
    db.flush()
    return row


def _get_or_create_admin(db: Session, company: Company, email: str, name: str, password: str) -> User:
    row = db.scalar(select(User).where(User.email == email))
    if row:
        return row
    row = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        email_verified=True,
        company_id=company.id,
        role="admin",
        can_access_dashboard=True,
        can_access_saved_properties=True,
        can_access_team_management=True,
    )
    db.add(row)
    db.flush()
    return row


def _seed_properties(db: Session, cities: dict[str, City]) -> int:
    owners: list[Owner] = []
    for first, last, entity, entity_type, occupation, worth in OWNERS:
        kind = "entity" if entity else "individual"
        row = Owner(
            type=kind,
            first_name=first,
            last_name=last,
            entity_name=entity,
            entity_type=entity_type,
            occupation=occupation,
            estimated_net_worth=worth,
            data_source="seed",
        )
        db.add(row)
        owners.append(row)
    db.flush()

    count = 0
    for city_name, address, ptype, year, sqft, beds, baths, value, owner_idx in PROPERTIES:
        city = cities[city_name]
        prop = Property(
            state_id=city.state_id,
            county_id=city.county_id,
            city_id=city.id,
            address=address,
            zip_code=(city.zip_codes or [None])[0],
            latitude=city.latitude,
            longitude=city.longitude,
            property_type=ptype,
            year_built=year,
            square_footage=sqft,
            bedrooms=beds,
            bathrooms=baths,
            current_value=value,
            assessed_value=round(value * 0.8),
            tax_amount=round(value * 0.011),
            last_sale_price=round(value * 0.7),
            last_sale_date=date(2019, 6, 1),
            data_source="seed",
            confidence=0.9,
        )
        db.add(prop)
        db.flush()

        share = 100.0 / len(owner_idx) if owner_idx else 0.0
        for i in owner_idx:
            db.add(
                PropertyOwnership(
                    property_id=prop.id,
                    owner_id=owners[i].id,
                    ownership_type="fee_simple",
                    ownership_percent=share,
                    is_active=True,
                    start_date=date(2019, 6, 1),
                )
            )
        db.add(
            PropertyTransaction(
                property_id=prop.id,
                buyer_id=owners[owner_idx[0]].id if owner_idx else None,
                seller_id=None,
                transaction_type="sale",
                amount=round(value * 0.7),
                transaction_date=date(2019, 6, 1),
                document_type="grant_deed",
                recording_date=date(2019, 6, 10),
            )
        )
        count += 1
    return count


def seed_demo(
    *,
    company_name: str = "Plotbook Demo",
    admin_email: str = "admin@plotbook.local",
    admin_name: str = "Demo Admin",
    admin_password: str = "change-me-please",
    create_sample_properties: bool = True,
) -> SeedResult:
    init_db()
    db = SessionLocal()
    try:
        cities: dict[str, City] = {}
        for name, code, region, counties in GEOGRAPHY:
            state = _get_or_create_state(db, name, code, region)
            for county_name, fips, city_rows in counties:
                county = _get_or_create_county(db, state, county_name, fips)
                for city_name, lat, lng, zips in city_rows:
                    cities[city_name] = _get_or_create_city(db, state, county, city_name, lat, lng, zips)

        company = _get_or_create_company(db, company_name)
        _get_or_create_admin(db, company, admin_email.strip().lower(), admin_name, admin_password)

        n = 0
        already_seeded = db.scalar(select(Property.id).where(Property.data_source == "seed").limit(1)) is not None
        if create_sample_properties and not already_seeded:
            n = _seed_properties(db, cities)

        db.commit()
        return SeedResult(company_id=int(company.id), admin_email=admin_email, states=len(GEOGRAPHY), properties=n)
    finally:
        db.close()

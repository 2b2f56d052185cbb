# backend/plotbook/models.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def loads_json_list(raw: Optional[str]) -> list[Any]:
    if not raw:
        return []
    try:
        v = json.loads(raw)
    except ValueError:
        return []
    return v if isinstance(v, list) else []


# -----------------------------
# Geography
# -----------------------------
class State(Base):
    __tablename__ = "states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(2), nullable=False, unique=True, index=True)
    region: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    counties: Mapped[List["County"]] = relationship(back_populates="state")
    cities: Mapped[List["City"]] = relationship(back_populates="state")


class County(Base):
    __tablename__ = "counties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(Integer, ForeignKey("states.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    fips_code: Mapped[Optional[str]] = mapped_column(String(5), nullable=True, unique=True)
    population: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    median_income: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    state: Mapped["State"] = relationship(back_populates="counties")
    cities: Mapped[List["City"]] = relationship(back_populates="county")


class City(Base):
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(Integer, ForeignKey("states.id"), nullable=False, index=True)
    county_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("counties.id"), nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    population: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    median_income: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    zip_codes_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    state: Mapped["State"] = relationship(back_populates="cities")
    county: Mapped[Optional["County"]] = relationship(back_populates="cities")

    @property
    def zip_codes(self) -> list[str]:
        return [str(z) for z in loads_json_list(self.zip_codes_json)]


# -----------------------------
# Properties / Owners
# -----------------------------
class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (Index("ix_properties_current_value", "current_value"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    state_id: Mapped[int] = mapped_column(Integer, ForeignKey("states.id"), nullable=False, index=True)
    county_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("counties.id"), nullable=True, index=True)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("cities.id"), nullable=True, index=True)

    address: Mapped[str] = mapped_column(String(255), nullable=False)
    street_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    street_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    property_type: Mapped[str] = mapped_column(String(60), nullable=False, default="residential")
    building_type: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    square_footage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lot_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    stories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    current_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    assessed_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tax_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_sale_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_sale_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    data_source: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    state: Mapped["State"] = relationship()
    county: Mapped[Optional["County"]] = relationship()
    city: Mapped[Optional["City"]] = relationship()

    ownerships: Mapped[List["PropertyOwnership"]] = relationship(
        back_populates="property", cascade="all, delete-orphan"
    )
    transactions: Mapped[List["PropertyTransaction"]] = relationship(
        back_populates="property", cascade="all, delete-orphan"
    )


class Owner(Base):
    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="individual")  # individual|entity

    # individual
    first_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    occupation: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    employer: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    industry: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # entity
    entity_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    estimated_net_worth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    mailing_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    data_source: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    ownerships: Mapped[List["PropertyOwnership"]] = relationship(back_populates="owner")


class PropertyOwnership(Base):
    __tablename__ = "property_ownerships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True)

    ownership_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    ownership_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="ownerships")
    owner: Mapped["Owner"] = relationship(back_populates="ownerships")


class PropertyTransaction(Base):
    __tablename__ = "property_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    buyer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("owners.id", ondelete="SET NULL"), nullable=True)
    seller_id: Mapped[Optional[int]] = mapped_column(ForeignKey("owners.id", ondelete="SET NULL"), nullable=True)

    transaction_type: Mapped[str] = mapped_column(String(30), nullable=False, default="sale")
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    transaction_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    document_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    recording_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="transactions")
    buyer: Mapped[Optional["Owner"]] = relationship(foreign_keys=[buyer_id])
    seller: Mapped[Optional["Owner"]] = relationship(foreign_keys=[seller_id])


# -----------------------------
# Tenancy: companies / users / invitations
# -----------------------------
class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    users: Mapped[List["User"]] = relationship(back_populates="company")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("companies.id"), nullable=True, index=True)

    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False, default="")
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")  # user|admin
    can_access_dashboard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_access_saved_properties: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_access_team_management: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    company: Mapped[Optional["Company"]] = relationship(back_populates="users")


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|accepted

    invited_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    company_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("companies.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    admin: Mapped["User"] = relationship(foreign_keys=[invited_by])
    company: Mapped[Optional["Company"]] = relationship()


class SavedProperty(Base):
    __tablename__ = "saved_properties"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_saved_properties_user_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def tags(self) -> list[str]:
        return [str(t) for t in loads_json_list(self.tags_json)]

    # keep below `tags`: this attribute shadows the builtin `property` in the class body
    user: Mapped["User"] = relationship()
    property: Mapped["Property"] = relationship()


class ActivityEvent(Base):
    __tablename__ = "activity_events"
    __table_args__ = (Index("ix_activity_events_company_created", "company_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("companies.id"), nullable=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)  # auth|data|admin|system
    icon: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    entity_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    actor: Mapped[Optional["User"]] = relationship()

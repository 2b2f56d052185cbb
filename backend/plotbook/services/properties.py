# backend/plotbook/services/properties.py
from __future__ import annotations

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from ..domain.property_search import PropertySearchParams, build_conditions, build_order_by
from ..errors import NotFound
from ..models import Property, PropertyOwnership, PropertyTransaction


def must_get_property(db: Session, *, property_id: int) -> Property:
    row = db.scalar(select(Property).where(Property.id == property_id))
    if not row:
        raise NotFound("Property not found")
    return row


def load_property_detail(db: Session, *, property_id: int) -> Property:
    row = db.scalar(
        select(Property)
        .where(Property.id == property_id)
        .options(
            selectinload(Property.state),
            selectinload(Property.county),
            selectinload(Property.city),
            selectinload(Property.ownerships).selectinload(PropertyOwnership.owner),
            selectinload(Property.transactions).selectinload(PropertyTransaction.buyer),
            selectinload(Property.transactions).selectinload(PropertyTransaction.seller),
        )
    )
    if not row:
        raise NotFound("Property not found")
    return row


def search_properties(db: Session, params: PropertySearchParams, *, limit: int) -> tuple[list[Property], int]:
    """One page of matches plus the total match count."""
    conds = build_conditions(params)
    where = and_(*conds) if conds else None

    q = select(Property).options(
        selectinload(Property.state),
        selectinload(Property.city),
        selectinload(Property.ownerships).selectinload(PropertyOwnership.owner),
    )
    cq = select(func.count(Property.id))
    if where is not None:
        q = q.where(where)
        cq = cq.where(where)

    rows = list(db.scalars(q.order_by(*build_order_by(params)).limit(limit)).all())
    total = int(db.scalar(cq) or 0)
    return rows, total

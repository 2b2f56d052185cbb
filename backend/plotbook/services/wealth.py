# backend/plotbook/services/wealth.py
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..errors import NotFound
from ..models import Owner, Property, PropertyOwnership


def must_get_owner(db: Session, *, owner_id: int) -> Owner:
    row = db.scalar(select(Owner).where(Owner.id == owner_id))
    if not row:
        raise NotFound("Owner not found")
    return row


def active_ownerships(db: Session, *, owner_id: int) -> list[PropertyOwnership]:
    """Active stakes of one owner, largest first; ties by oldest row."""
    return list(
        db.scalars(
            select(PropertyOwnership)
            .where(PropertyOwnership.owner_id == owner_id, PropertyOwnership.is_active.is_(True))
            .options(
                selectinload(PropertyOwnership.property).selectinload(Property.state),
                selectinload(PropertyOwnership.property).selectinload(Property.city),
            )
            .order_by(func.coalesce(PropertyOwnership.ownership_percent, 0).desc(), PropertyOwnership.id)
        ).all()
    )

# backend/plotbook/services/saved_properties.py
from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..domain.activity import record_activity
from ..errors import Conflict, NotFound
from ..models import Property, PropertyOwnership, SavedProperty, loads_json_list
from .properties import must_get_property

log = logging.getLogger(__name__)

RECENT_SAVES = 5


def _with_property():
    return (
        selectinload(SavedProperty.property).selectinload(Property.state),
        selectinload(SavedProperty.property).selectinload(Property.city),
        selectinload(SavedProperty.property)
        .selectinload(Property.ownerships)
        .selectinload(PropertyOwnership.owner),
    )


def get_saved(db: Session, *, user_id: int, property_id: int) -> Optional[SavedProperty]:
    return db.scalar(
        select(SavedProperty).where(SavedProperty.user_id == user_id, SavedProperty.property_id == property_id)
    )


def save_property(
    db: Session,
    *,
    user_id: int,
    company_id: Optional[int],
    property_id: int,
    notes: Optional[str] = None,
    tags: Optional[list[str]] = None,
    request: Optional[Request] = None,
) -> SavedProperty:
    must_get_property(db, property_id=property_id)
    if get_saved(db, user_id=user_id, property_id=property_id) is not None:
        raise Conflict("Property already saved")

    row = SavedProperty(
        user_id=user_id,
        property_id=property_id,
        notes=(notes or None),
        tags_json=json.dumps(list(tags or [])),
    )
    db.add(row)
    try:
        db.flush()
    except IntegrityError:
        # concurrent save of the same pair slipped past the check above
        db.rollback()
        raise Conflict("Property already saved")

    record_activity(
        db,
        company_id=company_id,
        actor_user_id=user_id,
        action="Property saved",
        entity_type="property",
        entity_id=property_id,
        request=request,
    )
    db.commit()
    log.info("property_saved", extra={"user_id": user_id, "property_id": property_id})

    return db.scalar(select(SavedProperty).where(SavedProperty.id == row.id).options(*_with_property()))


def unsave_property(
    db: Session,
    *,
    user_id: int,
    company_id: Optional[int],
    property_id: int,
    request: Optional[Request] = None,
) -> None:
    res = db.execute(
        delete(SavedProperty).where(SavedProperty.user_id == user_id, SavedProperty.property_id == property_id)
    )
    if res.rowcount == 0:
        db.rollback()
        raise NotFound("Saved property not found")

    record_activity(
        db,
        company_id=company_id,
        actor_user_id=user_id,
        action="Property unsaved",
        entity_type="property",
        entity_id=property_id,
        request=request,
    )
    db.commit()
    log.info("property_unsaved", extra={"user_id": user_id, "property_id": property_id})


def list_saved(
    db: Session,
    *,
    user_id: int,
    page: int,
    limit: int,
    tag: Optional[str] = None,
) -> dict[str, Any]:
    """
    Newest first. Tags live in a JSON text column, so tag membership and the
    tag vocabulary are computed here rather than in SQL.
    """
    index = db.execute(
        select(SavedProperty.id, SavedProperty.tags_json)
        .where(SavedProperty.user_id == user_id)
        .order_by(SavedProperty.created_at.desc(), SavedProperty.id.desc())
    ).all()

    vocabulary: set[str] = set()
    matching: list[int] = []
    for sid, raw in index:
        tags = [str(t) for t in loads_json_list(raw)]
        vocabulary.update(tags)
        if tag is None or tag in tags:
            matching.append(int(sid))

    total = len(matching)
    offset = (page - 1) * limit
    page_ids = matching[offset : offset + limit]

    rows: list[SavedProperty] = []
    if page_ids:
        by_id = {
            r.id: r
            for r in db.scalars(
                select(SavedProperty).where(SavedProperty.id.in_(page_ids)).options(*_with_property())
            ).all()
        }
        rows = [by_id[i] for i in page_ids if i in by_id]

    return {
        "rows": rows,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "available_tags": sorted(vocabulary),
    }


def saved_summary(db: Session, *, user_id: int) -> tuple[int, list[SavedProperty]]:
    count = int(db.scalar(select(func.count(SavedProperty.id)).where(SavedProperty.user_id == user_id)) or 0)
    recent = list(
        db.scalars(
            select(SavedProperty)
            .where(SavedProperty.user_id == user_id)
            .options(*_with_property())
            .order_by(SavedProperty.created_at.desc(), SavedProperty.id.desc())
            .limit(RECENT_SAVES)
        ).all()
    )
    return count, recent

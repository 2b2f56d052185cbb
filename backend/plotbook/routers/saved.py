# backend/plotbook/routers/saved.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, require_saved_properties
from ..config import settings
from ..db import get_db
from ..domain.property_views import saved_property_view
from ..schemas import SaveIn
from ..services.saved_properties import get_saved, list_saved, save_property, unsave_property

# Mounted before the properties router so /properties/save is not read as a property id.
router = APIRouter(prefix="/properties", tags=["saved-properties"])


@router.get("/save", response_model=dict)
def saved_list(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.saved_default_limit, ge=1, le=settings.saved_max_limit),
    tag: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_saved_properties),
):
    res = list_saved(db, user_id=p.user_id, page=page, limit=limit, tag=(tag or None))
    return {
        "success": True,
        "savedProperties": [saved_property_view(sp, with_owners=True) for sp in res["rows"]],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": res["total"],
            "totalPages": res["total_pages"],
        },
        "availableTags": res["available_tags"],
    }


@router.post("/save", response_model=dict)
def save(
    payload: SaveIn,
    request: Request,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_saved_properties),
):
    sp = save_property(
        db,
        user_id=p.user_id,
        company_id=p.company_id,
        property_id=payload.property_id,
        notes=payload.notes,
        tags=payload.tags,
        request=request,
    )
    return {"success": True, "savedProperty": saved_property_view(sp)}


@router.delete("/save", response_model=dict)
def unsave(
    request: Request,
    property_id: int = Query(alias="propertyId"),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_saved_properties),
):
    unsave_property(db, user_id=p.user_id, company_id=p.company_id, property_id=property_id, request=request)
    return {"success": True, "message": "Property removed from saved list"}


@router.get("/save/check", response_model=dict)
def check(
    property_id: int = Query(alias="propertyId"),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_saved_properties),
):
    sp = get_saved(db, user_id=p.user_id, property_id=property_id)
    return {
        "success": True,
        "isSaved": sp is not None,
        "savedProperty": (
            {"id": sp.id, "notes": sp.notes, "tags": sp.tags, "createdAt": sp.created_at} if sp is not None else None
        ),
    }

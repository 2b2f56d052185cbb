# backend/plotbook/routers/dashboard.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_optional_principal
from ..db import get_db
from ..domain.formatting import format_count, format_currency
from ..errors import AuthorizationDenied
from ..models import City, Owner, Property, SavedProperty, State

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _count(db: Session, col) -> int:
    return int(db.scalar(select(func.count(col))) or 0)


@router.get("/stats", response_model=dict)
def dashboard_stats(db: Session = Depends(get_db), p: Optional[Principal] = Depends(get_optional_principal)):
    """
    Platform-wide totals. Anonymous callers get the general numbers; a signed-in
    caller also gets their own saved count but needs dashboard access.
    """
    if p is not None and not p.can_access_dashboard:
        raise AuthorizationDenied("Forbidden: canAccessDashboard is not granted")

    total_value = float(db.scalar(select(func.coalesce(func.sum(Property.current_value), 0))) or 0)

    saved = 0
    if p is not None:
        saved = int(db.scalar(select(func.count(SavedProperty.id)).where(SavedProperty.user_id == p.user_id)) or 0)

    return {
        "totalProperties": format_count(_count(db, Property.id)),
        "totalOwners": format_count(_count(db, Owner.id)),
        "totalValue": format_currency(total_value),
        "savedProperties": str(saved),
        "totalStates": _count(db, State.id),
        "totalCities": _count(db, City.id),
        "isUserSpecific": p is not None,
    }

# backend/plotbook/routers/properties.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..config import settings
from ..db import get_db
from ..domain.property_search import filters_echo, parse_search_params
from ..domain.property_views import property_detail, property_marker
from ..services.properties import load_property_detail, search_properties

log = logging.getLogger(__name__)

router = APIRouter(prefix="/properties", tags=["properties"])


@router.get("/locations", response_model=dict)
def locations(
    request: Request,
    limit: int = Query(default=settings.locations_default_limit, ge=1, le=settings.locations_max_limit),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    """
    Map markers for every property matching the query-string filters.

    `total` counts all matches; `properties` holds at most `limit` of them.
    """
    params = parse_search_params(request.query_params)
    rows, total = search_properties(db, params, limit=limit)

    log.info("property_search", extra={"search_type": params.search_type, "result_count": total})
    return {
        "properties": [property_marker(r, search_type=params.search_type) for r in rows],
        "total": total,
        "searchType": params.search_type,
        "filters": filters_echo(params),
    }


@router.get("/{property_id}", response_model=dict)
def get_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = load_property_detail(db, property_id=property_id)
    return {"property": property_detail(row), "success": True}

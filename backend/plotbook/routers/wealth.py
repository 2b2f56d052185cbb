# backend/plotbook/routers/wealth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..domain.wealth import wealth_analysis
from ..services.wealth import active_ownerships, must_get_owner

log = logging.getLogger(__name__)

router = APIRouter(prefix="/wealth-analysis", tags=["wealth"])


@router.get("/{owner_id}", response_model=dict)
def owner_wealth_analysis(
    owner_id: int,
    response: Response,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    """Portfolio, market comparison and risk summary for one owner's active holdings."""
    owner = must_get_owner(db, owner_id=owner_id)
    body = wealth_analysis(owner, active_ownerships(db, owner_id=owner_id))

    log.info("wealth_analysis", extra={"owner_id": owner_id, "result_count": body["metadata"]["propertiesProcessed"]})
    response.headers["Cache-Control"] = "private, max-age=300"
    return body

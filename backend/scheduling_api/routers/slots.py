# backend/scheduling_api/routers/slots.py
"""
Slots API endpoints.

GET /slots/available - Slots of a scheduling link, tagged free/taken,
                       plus the link's usage counters
"""

from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import AvailabilityResponse
from ..services.slots.availability import calculate_link_availability


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailabilityResponse)
def get_available_slots(
    link_id: int,
    target_date: date | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    """List availability of a link, optionally for a single day."""
    result = calculate_link_availability(
        db=db,
        link_id=link_id,
        target_date=target_date,
    )
    return AvailabilityResponse(**result)

# backend/scheduling_api/routers/bookings.py
# Bookings are created only through the coordinator: PATCH = 405, DELETE = 405

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Bookings as DBBookings
from ..schemas.bookings import (
    BookingCreate,
    BookingCreated,
    BookingRead,
)
from ..services.booking_coordinator import BookingRequest, commit_booking
from ..services.events import emit_booking_created
from ..services.exceptions import BookingNotFound

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise BookingNotFound()
    return obj


@router.post("/", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
):
    booking = commit_booking(
        db,
        BookingRequest(
            link_id=data.link_id,
            scheduled_time=data.scheduled_time,
            email=data.email,
            linkedin_url=str(data.linkedin_url) if data.linkedin_url else None,
            answers=[a.model_dump() for a in data.answers],
        ),
    )

    # Committed: hand over to enrichment / notification consumers
    emit_booking_created(booking)

    return BookingCreated(
        booking_id=booking.id,
        scheduled_time=booking.scheduled_time,
    )


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )

# backend/scheduling_api/services/ledger.py
"""
Booking ledger: read side of committed bookings.

Conflicts are an advisor-wide matter: one advisor has one calendar, whichever
link a booking came through. Usage, on the other hand, is counted per link.
"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.tables import Bookings as DBBookings


def count_link_usage(db: Session, link_id: int) -> int:
    """Number of bookings attributed to a link. Always a fresh count."""
    return (
        db.query(func.count(DBBookings.id))
        .filter(DBBookings.scheduling_link_id == link_id)
        .scalar()
    ) or 0


def booked_times(
    db: Session,
    advisor_id: int,
    start: datetime,
    end: datetime,
) -> set[datetime]:
    """Taken start instants of an advisor within [start, end]."""
    rows = (
        db.query(DBBookings.scheduled_time)
        .filter(
            DBBookings.advisor_id == advisor_id,
            DBBookings.scheduled_time >= start,
            DBBookings.scheduled_time <= end,
        )
        .all()
    )
    return {row.scheduled_time for row in rows}


def has_booking_at(db: Session, advisor_id: int, moment: datetime) -> bool:
    return (
        db.query(DBBookings.id)
        .filter(
            DBBookings.advisor_id == advisor_id,
            DBBookings.scheduled_time == moment,
        )
        .first()
    ) is not None


def list_advisor_bookings(db: Session, advisor_id: int) -> list[DBBookings]:
    return (
        db.query(DBBookings)
        .filter(DBBookings.advisor_id == advisor_id)
        .order_by(DBBookings.scheduled_time.asc())
        .all()
    )

# backend/scheduling_api/services/booking_coordinator.py
"""
Booking transaction coordinator.

The only place a booking row is created. One call is one transaction:

1. Re-fetch the link                                   → LinkNotFound
2. Lock the advisor's booking set, re-count link usage,
   re-run the link policy                              → LinkExpired / UsageLimitReached
3. Validate the request (slot on the advisor's grid,
   required questions answered)                        → SchedulingValidationError
4. Probe for a booking of the advisor at that instant  → SlotTaken
5. Insert and commit

Serialization per advisor:
- PostgreSQL & co: SELECT ... FOR UPDATE on the advisor row
- SQLite: the transaction starts with BEGIN IMMEDIATE (begin_write)
The (advisor_id, scheduled_time) unique constraint is the last line: a
violation at commit is reported as SlotTaken.

No side effects besides the row: notifying collaborators is up to the caller.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..database import begin_write
from ..models.tables import (
    Advisors as DBAdvisors,
    Bookings as DBBookings,
    SchedulingLinks as DBLinks,
)
from . import ledger
from .exceptions import (
    LinkNotFound,
    SchedulingError,
    SchedulingValidationError,
    SlotTaken,
    StoreUnavailable,
)
from .link_policy import evaluate_link_policy, raise_for_decision
from .slots.calculator import generate_slots
from .slots.config import to_reference, utc_now
from .window_store import list_windows

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    """What a visitor submits for one booking attempt."""
    link_id: int
    scheduled_time: datetime
    email: str
    linkedin_url: Optional[str] = None
    answers: list[dict] = field(default_factory=list)


def commit_booking(
    db: Session,
    request: BookingRequest,
    now: datetime | None = None,
) -> DBBookings:
    """
    Atomically validate and commit a booking.

    Returns:
        The committed booking row.

    Raises:
        LinkNotFound, LinkExpired, UsageLimitReached, SlotTaken,
        SchedulingValidationError: rejections, nothing written
        StoreUnavailable: the store could not be reached or stayed locked
    """
    now = now or utc_now()
    scheduled_time = to_reference(request.scheduled_time)

    try:
        begin_write(db)

        # Step 1: link
        link = db.get(DBLinks, request.link_id)
        if not link:
            raise LinkNotFound()

        # Step 2: lock the advisor, then policy on a fresh count
        _lock_advisor(db, link.advisor_id)

        current_usage = ledger.count_link_usage(db, link.id)
        decision = evaluate_link_policy(link, current_usage, now)
        raise_for_decision(decision, link, current_usage)

        # Step 3: request validation
        _validate_slot(db, link, scheduled_time, now)
        answers = _validate_answers(link, request.answers)

        # Step 4: advisor-wide conflict
        if ledger.has_booking_at(db, link.advisor_id, scheduled_time):
            raise SlotTaken()

        # Step 5: insert
        booking = DBBookings(
            advisor_id=link.advisor_id,
            scheduling_link_id=link.id,
            scheduled_time=scheduled_time,
            email=request.email,
            linkedin_url=request.linkedin_url,
            answers=json.dumps(answers),
        )
        db.add(booking)
        db.commit()

    except SchedulingError as exc:
        db.rollback()
        logger.info(
            f"Booking rejected: link_id={request.link_id}, "
            f"time={scheduled_time.isoformat()}, reason={exc.code}"
        )
        raise

    except IntegrityError:
        db.rollback()
        logger.info(
            f"Booking rejected by unique constraint: link_id={request.link_id}, "
            f"time={scheduled_time.isoformat()}"
        )
        raise SlotTaken()

    except OperationalError as exc:
        db.rollback()
        logger.exception(f"Booking store unavailable: link_id={request.link_id}")
        raise StoreUnavailable() from exc

    logger.info(
        f"Booking committed: booking_id={booking.id}, advisor_id={booking.advisor_id}, "
        f"link_id={booking.scheduling_link_id}, time={scheduled_time.isoformat()}"
    )
    return booking


# ── Helpers ──────────────────────────────────────────────────────────────


def _lock_advisor(db: Session, advisor_id: int) -> None:
    """Row lock scoping the transaction to one advisor's booking set."""
    (
        db.query(DBAdvisors.id)
        .filter(DBAdvisors.id == advisor_id)
        .with_for_update()
        .one()
    )


def _validate_slot(db: Session, link: DBLinks, scheduled_time: datetime, now: datetime) -> None:
    """The instant must be a slot the link would offer right now."""
    slots = generate_slots(
        list_windows(db, link.advisor_id),
        link.meeting_length,
        link.max_advance_days,
        now,
        on_date=scheduled_time.date(),
    )
    if scheduled_time not in slots:
        raise SchedulingValidationError(
            f"{scheduled_time.isoformat()} is not an available slot of this link"
        )


def _validate_answers(link: DBLinks, answers: list[dict]) -> list[dict]:
    """Every required question of the link needs a non-blank answer."""
    cleaned = [
        {
            "question": str(a.get("question", "")),
            "answer": str(a.get("answer", "") or "").strip(),
        }
        for a in answers
    ]
    given = {a["question"]: a["answer"] for a in cleaned}

    missing = [
        q["question"]
        for q in link.questions
        if q.get("required") and not given.get(q["question"])
    ]
    if missing:
        raise SchedulingValidationError(
            "This field is required: " + ", ".join(missing),
            missing=missing,
        )
    return cleaned

# backend/scheduling_api/routers/advisors.py
# Advisor registry + everything an advisor owns (windows, links, bookings).
# Identity/session handling is done upstream; advisor_id is trusted here.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import begin_write, get_db
from ..models.tables import Advisors as DBAdvisors
from ..schemas.advisors import AdvisorCreate, AdvisorRead
from ..schemas.bookings import BookingRead
from ..schemas.links import LinkCreate, LinkRead
from ..schemas.windows import WindowRead, WindowsReplace
from ..services import ledger, scheduling_links, window_store
from ..services.exceptions import AdvisorNotFound

router = APIRouter(prefix="/advisors", tags=["advisors"])


def _get_advisor_or_404(db: Session, advisor_id: int) -> DBAdvisors:
    obj = db.get(DBAdvisors, advisor_id)
    if not obj:
        raise AdvisorNotFound()
    return obj


@router.post("/", response_model=AdvisorRead, status_code=status.HTTP_201_CREATED)
def create_advisor(
    data: AdvisorCreate,
    db: Session = Depends(get_db),
):
    # the unique index on email decides, also between concurrent requests
    begin_write(db)
    obj = DBAdvisors(**data.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Advisor with this email already exists",
        )
    return obj


@router.get("/{advisor_id}", response_model=AdvisorRead)
def get_advisor(advisor_id: int, db: Session = Depends(get_db)):
    return _get_advisor_or_404(db, advisor_id)


# ── Availability windows ─────────────────────────────────────────────────


@router.get("/{advisor_id}/windows", response_model=list[WindowRead])
def list_windows(advisor_id: int, db: Session = Depends(get_db)):
    _get_advisor_or_404(db, advisor_id)
    return window_store.list_windows(db, advisor_id)


@router.put("/{advisor_id}/windows", response_model=list[WindowRead])
def replace_windows(
    advisor_id: int,
    data: WindowsReplace,
    db: Session = Depends(get_db),
):
    """Replace the whole window set (delete-all + insert-all)."""
    return window_store.replace_windows(
        db,
        advisor_id,
        [w.model_dump() for w in data.windows],
    )


# ── Scheduling links ─────────────────────────────────────────────────────


@router.get("/{advisor_id}/links", response_model=list[LinkRead])
def list_links(advisor_id: int, db: Session = Depends(get_db)):
    _get_advisor_or_404(db, advisor_id)
    return scheduling_links.list_advisor_links(db, advisor_id)


@router.post(
    "/{advisor_id}/links", response_model=LinkRead, status_code=status.HTTP_201_CREATED
)
def create_link(
    advisor_id: int,
    data: LinkCreate,
    db: Session = Depends(get_db),
):
    return scheduling_links.create_link(
        db,
        advisor_id,
        meeting_length=data.meeting_length,
        max_advance_days=data.max_advance_days,
        custom_questions=[q.model_dump() for q in data.custom_questions],
        usage_limit=data.usage_limit,
        expires_at=data.expires_at,
    )


# ── Bookings ─────────────────────────────────────────────────────────────


@router.get("/{advisor_id}/bookings", response_model=list[BookingRead])
def list_bookings(advisor_id: int, db: Session = Depends(get_db)):
    _get_advisor_or_404(db, advisor_id)
    return ledger.list_advisor_bookings(db, advisor_id)

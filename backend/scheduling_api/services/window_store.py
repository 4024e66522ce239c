# backend/scheduling_api/services/window_store.py
"""
Availability window store.

An advisor's window set is a value: saving the schedule deletes every window
of the advisor and inserts the new set in the same transaction. There is no
incremental patching and no versioning.
"""

import json
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from ..database import begin_write
from ..models.tables import (
    Advisors as DBAdvisors,
    AvailabilityWindows as DBWindows,
)
from .exceptions import AdvisorNotFound
from .slots.calculator import WindowRule
from .slots.config import Weekday, minutes_to_time_str

logger = logging.getLogger(__name__)


def list_windows(db: Session, advisor_id: int) -> list[DBWindows]:
    """Current windows of an advisor in creation order."""
    return (
        db.query(DBWindows)
        .filter(DBWindows.advisor_id == advisor_id)
        .order_by(DBWindows.id.asc())
        .all()
    )


def replace_windows(
    db: Session,
    advisor_id: int,
    windows: Iterable[dict],
) -> list[DBWindows]:
    """
    Replace all windows of an advisor.

    Args:
        windows: dicts with start_time, end_time ("HH:MM") and weekdays

    Raises:
        AdvisorNotFound: unknown advisor
        SchedulingValidationError: any window is malformed (nothing is written)
    """
    # Validate everything before touching the table
    rules = [
        WindowRule.parse(w["start_time"], w["end_time"], w.get("weekdays") or [])
        for w in windows
    ]

    try:
        begin_write(db)
        if not db.get(DBAdvisors, advisor_id):
            raise AdvisorNotFound()

        deleted = (
            db.query(DBWindows)
            .filter(DBWindows.advisor_id == advisor_id)
            .delete(synchronize_session=False)
        )

        created = []
        for rule in rules:
            obj = DBWindows(
                advisor_id=advisor_id,
                start_time=minutes_to_time_str(rule.start_min),
                end_time=minutes_to_time_str(rule.end_min),
                weekdays=json.dumps([d.value for d in Weekday if d in rule.weekdays]),
            )
            db.add(obj)
            created.append(obj)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Windows replaced: advisor_id={advisor_id}, deleted={deleted}, created={len(created)}"
    )
    return list_windows(db, advisor_id)

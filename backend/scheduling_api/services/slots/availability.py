# backend/scheduling_api/services/slots/availability.py
"""
Availability listing for a scheduling link.

Combines:
- the advisor's windows (slot generation)
- the advisor's bookings across all links (taken flags)
- the link policy with its own usage count (advisory only)

Read-only. The result may be stale by the time the visitor submits; the
booking coordinator re-checks everything at commit.
"""

from datetime import date, datetime
from sqlalchemy.orm import Session

from ...models.tables import SchedulingLinks as DBLinks
from .. import ledger
from ..exceptions import LinkExpired, LinkNotFound, SchedulingValidationError
from ..link_policy import PolicyDecision, link_usage
from ..window_store import list_windows
from .calculator import generate_slots
from .config import utc_now


def calculate_link_availability(
    db: Session,
    link_id: int,
    target_date: date | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Calculate the annotated slot list of a link.

    Returns:
        Dict shaped like AvailabilityResponse.

    Raises:
        LinkNotFound: unknown link
        LinkExpired: link past its expiration
        SchedulingValidationError: target_date outside [today, horizon]
    """
    now = now or utc_now()

    # Step 1: link + policy
    link = db.get(DBLinks, link_id)
    if not link:
        raise LinkNotFound()

    usage = link_usage(link, ledger.count_link_usage(db, link.id), now)
    if usage.decision is PolicyDecision.DENY_EXPIRED:
        raise LinkExpired(expires_at=link.expires_at)

    # Step 2: slot grid
    slots = generate_slots(
        list_windows(db, link.advisor_id),
        link.meeting_length,
        link.max_advance_days,
        now,
        on_date=target_date,
    )

    if target_date is not None:
        if target_date < now.date():
            raise SchedulingValidationError("Date cannot be in the past")
        if target_date > slots.horizon_end.date():
            raise SchedulingValidationError(
                f"Date cannot be more than {link.max_advance_days} days ahead"
            )

    # Step 3: taken flags from the advisor's whole calendar
    booked = ledger.booked_times(db, link.advisor_id, now, slots.horizon_end)

    return {
        "link_id": link.id,
        "on_date": target_date,
        "meeting_length": link.meeting_length,
        "max_advance_days": link.max_advance_days,
        "current_usage": usage.current_usage,
        "usage_limit": usage.usage_limit,
        "remaining_usage": usage.remaining_usage,
        "is_usage_limit_reached": usage.is_usage_limit_reached,
        "expires_at": usage.expires_at,
        "slots": [
            {"time": slot, "taken": slot in booked}
            for slot in slots
        ],
    }

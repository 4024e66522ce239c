"""
backend/scheduling_api/services/events.py

Event emitter: hands committed bookings over to the consumers that enrich
answers (CRM / people-data lookups, answer augmentation) and send
notifications. Those consumers live outside this service.

Events are pushed to a Redis list (settings.events_queue). Emission is
best-effort: a failure is logged and never undoes the booking.
"""

import json
import time
import logging

from ..config import settings
from ..redis_client import redis_client

logger = logging.getLogger(__name__)


def emit_event(event_type: str, payload: dict) -> bool:
    """
    Emit a p2p event (instant delivery).

    Returns:
        True if the event reached the queue.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(settings.events_queue, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {settings.events_queue}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False


def emit_booking_created(booking) -> bool:
    """Hand a committed booking and the raw answers to the collaborators."""
    return emit_event("booking_created", {
        "booking_id": booking.id,
        "advisor_id": booking.advisor_id,
        "scheduling_link_id": booking.scheduling_link_id,
        "scheduled_time": booking.scheduled_time.isoformat(),
        "email": booking.email,
        "linkedin_url": booking.linkedin_url,
        "answers": booking.answer_list,
    })

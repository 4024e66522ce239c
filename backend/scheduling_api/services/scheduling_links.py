# backend/scheduling_api/services/scheduling_links.py
"""
Scheduling link registry.

Links are immutable once created; the only other write is deletion.
"""

import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import begin_write
from ..models.tables import (
    Advisors as DBAdvisors,
    SchedulingLinks as DBLinks,
)
from .exceptions import (
    AdvisorNotFound,
    LinkNotFound,
    SchedulingValidationError,
    SlugGenerationExhausted,
)
from .slots.config import BookingConfig, get_booking_config, to_reference
from .slug import generate_slug

logger = logging.getLogger(__name__)


def create_link(
    db: Session,
    advisor_id: int,
    meeting_length: int,
    max_advance_days: int,
    custom_questions: list[dict],
    usage_limit: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    config: BookingConfig | None = None,
) -> DBLinks:
    """
    Create a scheduling link with a fresh unique slug.

    Blank questions are dropped; at least one question must remain.

    Raises:
        AdvisorNotFound: unknown advisor
        SchedulingValidationError: out-of-range values or no questions
        SlugGenerationExhausted: every slug attempt collided
    """
    config = config or get_booking_config()

    if not config.meeting_length_ok(meeting_length):
        raise SchedulingValidationError(
            f"Meeting length must be between {config.min_meeting_length} "
            f"and {config.max_meeting_length} minutes"
        )
    if not config.advance_days_ok(max_advance_days):
        raise SchedulingValidationError(
            f"Max advance days must be between {config.min_advance_days} "
            f"and {config.max_advance_days}"
        )
    if usage_limit is not None and usage_limit < 1:
        raise SchedulingValidationError("Usage limit must be a positive number")

    questions = [
        {"question": q["question"].strip(), "required": bool(q.get("required", False))}
        for q in custom_questions
        if q.get("question") and q["question"].strip()
    ]
    if not questions:
        raise SchedulingValidationError("At least one question is required")

    begin_write(db)
    if not db.get(DBAdvisors, advisor_id):
        raise AdvisorNotFound()

    for attempt in range(1, config.slug_max_attempts + 1):
        slug = generate_slug(config.slug_length)
        if _slug_taken(db, slug):
            logger.info(f"Slug collision on attempt {attempt}: {slug}")
            continue

        link = DBLinks(
            advisor_id=advisor_id,
            slug=slug,
            meeting_length=meeting_length,
            max_advance_days=max_advance_days,
            usage_limit=usage_limit,
            expires_at=to_reference(expires_at) if expires_at else None,
            custom_questions=json.dumps(questions),
        )
        db.add(link)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            begin_write(db)
            if not _slug_taken(db, slug):
                # not a collision: the advisor went away or another constraint failed
                if not db.get(DBAdvisors, advisor_id):
                    raise AdvisorNotFound() from exc
                raise
            # slug taken by a concurrent creation between the probe and the insert
            logger.info(f"Slug collision at insert on attempt {attempt}: {slug}")
            continue

        logger.info(f"Scheduling link created: link_id={link.id}, advisor_id={advisor_id}, slug={slug}")
        return link

    logger.error(f"Failed to generate unique slug for advisor_id={advisor_id}")
    raise SlugGenerationExhausted()


def _slug_taken(db: Session, slug: str) -> bool:
    return db.query(DBLinks.id).filter(DBLinks.slug == slug).first() is not None


def get_link(db: Session, link_id: int) -> DBLinks:
    link = db.get(DBLinks, link_id)
    if not link:
        raise LinkNotFound()
    return link


def get_link_by_slug(db: Session, slug: str) -> DBLinks:
    link = db.query(DBLinks).filter(DBLinks.slug == slug).first()
    if not link:
        raise LinkNotFound()
    return link


def list_advisor_links(db: Session, advisor_id: int) -> list[DBLinks]:
    """Links of an advisor, newest first."""
    return (
        db.query(DBLinks)
        .filter(DBLinks.advisor_id == advisor_id)
        .order_by(DBLinks.created_at.desc(), DBLinks.id.desc())
        .all()
    )


def delete_link(db: Session, link_id: int) -> None:
    """Hard delete; the link's bookings go with it."""
    begin_write(db)
    link = get_link(db, link_id)
    db.delete(link)
    db.commit()
    logger.info(f"Scheduling link deleted: link_id={link_id}")

# backend/scheduling_api/schemas/slots.py
"""
Pydantic schemas for the availability API.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """A single candidate slot."""
    time: datetime
    taken: bool

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    """Slots of a link plus its usage state."""
    link_id: int
    on_date: Optional[date] = None
    meeting_length: int = Field(description="Meeting length in minutes")
    max_advance_days: int

    current_usage: int
    usage_limit: Optional[int] = None
    remaining_usage: Optional[int] = None
    is_usage_limit_reached: bool
    expires_at: Optional[datetime] = None

    slots: list[SlotInfo]

    model_config = {"from_attributes": True}

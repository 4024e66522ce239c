# backend/scheduling_api/schemas/links.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CustomQuestion(BaseModel):
    question: str
    required: bool = False


class LinkCreate(BaseModel):
    meeting_length: int = Field(description="Meeting length in minutes (15-480)")
    max_advance_days: int = Field(description="Booking horizon in days (1-365)")
    usage_limit: Optional[int] = None
    expires_at: Optional[datetime] = None
    custom_questions: list[CustomQuestion] = []


class LinkRead(BaseModel):
    id: int
    advisor_id: int
    slug: str
    meeting_length: int
    max_advance_days: int
    usage_limit: Optional[int] = None
    expires_at: Optional[datetime] = None
    custom_questions: list[CustomQuestion] = Field(validation_alias="questions")
    created_at: datetime

    model_config = {"from_attributes": True}

# backend/scheduling_api/schemas/bookings.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from .advisors import fold_email


class BookingAnswer(BaseModel):
    question: str
    answer: str = ""


class BookingCreate(BaseModel):
    link_id: int
    scheduled_time: datetime = Field(description="Chosen slot start (UTC if no offset given)")
    email: EmailStr
    linkedin_url: Optional[HttpUrl] = None
    answers: list[BookingAnswer] = []

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return fold_email(v)

    @field_validator("linkedin_url", mode="before")
    @classmethod
    def blank_linkedin_url(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("linkedin_url")
    @classmethod
    def validate_linkedin_host(cls, v: Optional[HttpUrl]) -> Optional[HttpUrl]:
        if v is None:
            return v
        host = (v.host or "").lower()
        if host != "linkedin.com" and not host.endswith(".linkedin.com"):
            raise ValueError("Must be a LinkedIn URL")
        return v


class BookingCreated(BaseModel):
    """Response after a successful commit."""
    booking_id: int
    scheduled_time: datetime
    message: str = "Meeting booked successfully!"


class BookingRead(BaseModel):
    id: int
    advisor_id: int
    scheduling_link_id: int
    scheduled_time: datetime
    email: str
    linkedin_url: Optional[str] = None
    answers: list[BookingAnswer] = Field(validation_alias="answer_list")
    created_at: datetime

    model_config = {"from_attributes": True}

# backend/scheduling_api/schemas/advisors.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator


def fold_email(v):
    """Addresses are compared case-insensitively; store them lower-cased."""
    if isinstance(v, str):
        return v.strip().lower()
    return v


class AdvisorCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return fold_email(v)


class AdvisorRead(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

# backend/scheduling_api/schemas/windows.py

from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.slots.config import Weekday, is_time_str, time_str_to_minutes


class WindowIn(BaseModel):
    start_time: str = Field(description="Time in HH:MM format")
    end_time: str = Field(description="Time in HH:MM format")
    weekdays: list[Weekday] = Field(min_length=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not is_time_str(v):
            raise ValueError("Time must be in HH:MM format")
        return v

    @field_validator("weekdays", mode="before")
    @classmethod
    def upper_weekdays(cls, v):
        if isinstance(v, list):
            return [d.upper() if isinstance(d, str) else d for d in v]
        return v

    @model_validator(mode="after")
    def check_range(self) -> "WindowIn":
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class WindowsReplace(BaseModel):
    """Full window set of an advisor; replaces whatever is stored."""
    windows: list[WindowIn]


class WindowRead(BaseModel):
    id: int
    advisor_id: int
    start_time: str
    end_time: str
    weekdays: list[Weekday] = Field(validation_alias="weekday_names")

    model_config = {"from_attributes": True}

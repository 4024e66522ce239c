# backend/scheduling_api/services/slots/config.py
"""
Booking configuration and time helpers for slot generation.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from functools import lru_cache


class Weekday(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        """Weekday of a calendar date (date.weekday(): 0 = Monday)."""
        return _WEEKDAY_ORDER[day.weekday()]

    @classmethod
    def parse(cls, value) -> "Weekday":
        """Accept a member or a case-insensitive name ("monday", "MONDAY")."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown weekday: {value!r}")
        return cls(value.strip().upper())


_WEEKDAY_ORDER = tuple(Weekday)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the scheduling engine.

    Attributes:
        min_meeting_length / max_meeting_length: allowed link meeting length, minutes
        min_advance_days / max_advance_days: allowed booking horizon of a link, days
        slug_length: length of generated link slugs
        slug_max_attempts: collision retries before link creation gives up
    """
    min_meeting_length: int = 15
    max_meeting_length: int = 480
    min_advance_days: int = 1
    max_advance_days: int = 365
    slug_length: int = 10
    slug_max_attempts: int = 5

    def __post_init__(self):
        """Validate configuration."""
        if self.min_meeting_length <= 0 or self.min_meeting_length > self.max_meeting_length:
            raise ValueError(
                f"Invalid meeting length bounds: {self.min_meeting_length}..{self.max_meeting_length}"
            )
        if self.min_advance_days <= 0 or self.min_advance_days > self.max_advance_days:
            raise ValueError(
                f"Invalid advance days bounds: {self.min_advance_days}..{self.max_advance_days}"
            )
        if self.slug_max_attempts < 1:
            raise ValueError(f"slug_max_attempts must be positive, got {self.slug_max_attempts}")

    def meeting_length_ok(self, minutes: int) -> bool:
        return self.min_meeting_length <= minutes <= self.max_meeting_length

    def advance_days_ok(self, days: int) -> bool:
        return self.min_advance_days <= days <= self.max_advance_days


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton)."""
    return BookingConfig()


# ── Time helpers ─────────────────────────────────────────────────────────


def is_time_str(value: str) -> bool:
    return bool(_TIME_RE.match(value or ""))


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def utc_now() -> datetime:
    """Current instant in the reference zone (naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_reference(moment: datetime) -> datetime:
    """
    Normalize an instant to naive UTC.

    Aware datetimes are converted; naive ones are taken as already in UTC.
    """
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment

# backend/scheduling_api/services/slots/calculator.py
"""
Slot generation: recurring weekly windows → concrete slot start instants.

Pure domain logic, no database and no clock: "now" is always passed in.

For each day of the horizon [now, now + max_advance_days]:
  ✓ pick the windows whose weekday set contains that day
  ✓ walk each window in meeting_length steps (a trailing partial slot is dropped)
  ✓ drop candidates outside the horizon
  ✓ merge identical start-times coming from overlapping windows

Does NOT contain:
  ✗ Bookings (marked as taken by the availability listing)
  ✗ Link usage / expiration (link policy)
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator

from ..exceptions import SchedulingValidationError
from .config import (
    BookingConfig,
    Weekday,
    get_booking_config,
    is_time_str,
    minutes_to_time_str,
    time_str_to_minutes,
)


@dataclass(frozen=True)
class WindowRule:
    """
    One recurring availability window in minutes since midnight.

    Invariant: start_min < end_min (no overnight spans), weekdays non-empty.
    """
    start_min: int
    end_min: int
    weekdays: frozenset[Weekday]

    @classmethod
    def parse(cls, start_time: str, end_time: str, weekdays: Iterable[str]) -> "WindowRule":
        if not is_time_str(start_time) or not is_time_str(end_time):
            raise SchedulingValidationError(
                f"Window times must be in HH:MM format, got {start_time!r}-{end_time!r}"
            )
        start_min = time_str_to_minutes(start_time)
        end_min = time_str_to_minutes(end_time)
        if start_min >= end_min:
            raise SchedulingValidationError(
                f"Window start {start_time} must be before end {end_time}"
            )

        names = list(weekdays)
        try:
            days = frozenset(Weekday.parse(name) for name in names)
        except ValueError:
            raise SchedulingValidationError(f"Unknown weekday in {names!r}")
        if not days:
            raise SchedulingValidationError("Window must cover at least one weekday")

        return cls(start_min=start_min, end_min=end_min, weekdays=days)

    @classmethod
    def from_window(cls, window) -> "WindowRule":
        """Build a rule from a stored AvailabilityWindows row."""
        return cls.parse(window.start_time, window.end_time, window.weekday_names)

    def __str__(self) -> str:
        days = ",".join(d.value[:3] for d in Weekday if d in self.weekdays)
        return f"{days} {minutes_to_time_str(self.start_min)}-{minutes_to_time_str(self.end_min)}"


class SlotSequence:
    """
    Lazily produced, finite and restartable sequence of slot start instants.

    Every iteration starts over from the first day, so the same object can be
    walked several times and always yields the same strictly ascending values.
    """

    def __init__(
        self,
        rules: list[WindowRule],
        meeting_length: int,
        max_advance_days: int,
        now: datetime,
        on_date: date | None = None,
    ):
        self.rules = list(rules)
        self.meeting_length = meeting_length
        self.max_advance_days = max_advance_days
        self.now = now
        self.on_date = on_date

    @property
    def horizon_end(self) -> datetime:
        return self.now + timedelta(days=self.max_advance_days)

    def __iter__(self) -> Iterator[datetime]:
        first_day = self.now.date()
        last_day = self.horizon_end.date()

        if self.on_date is not None:
            if not first_day <= self.on_date <= last_day:
                return
            first_day = last_day = self.on_date

        day = first_day
        while day <= last_day:
            yield from self.day_slots(day)
            day += timedelta(days=1)

    def __contains__(self, moment: object) -> bool:
        if not isinstance(moment, datetime):
            return False
        if self.on_date is not None and moment.date() != self.on_date:
            return False
        return moment in self.day_slots(moment.date())

    def day_slots(self, day: date) -> list[datetime]:
        """Sorted, de-duplicated slot starts of one calendar day inside the horizon."""
        weekday = Weekday.of(day)
        midnight = datetime.combine(day, time.min)
        horizon_end = self.horizon_end
        step = self.meeting_length

        starts: set[datetime] = set()
        for rule in self.rules:
            if weekday not in rule.weekdays:
                continue

            t = rule.start_min
            while t + step <= rule.end_min:
                slot = midnight + timedelta(minutes=t)
                if self.now <= slot <= horizon_end:
                    starts.add(slot)
                t += step

        return sorted(starts)


def generate_slots(
    windows: Iterable,
    meeting_length: int,
    max_advance_days: int,
    now: datetime,
    on_date: date | None = None,
    config: BookingConfig | None = None,
) -> SlotSequence:
    """
    Generate candidate slots for an advisor's windows.

    Args:
        windows: AvailabilityWindows rows or WindowRule objects, any order
        meeting_length: slot length and step, minutes
        max_advance_days: horizon length, days from now
        now: reference instant (naive UTC)
        on_date: restrict the sequence to a single calendar day

    Raises:
        SchedulingValidationError: meeting length or horizon out of bounds,
            or a malformed window
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

    rules = [
        w if isinstance(w, WindowRule) else WindowRule.from_window(w)
        for w in windows
    ]
    return SlotSequence(rules, meeting_length, max_advance_days, now, on_date)

# backend/scheduling_api/services/slots/__init__.py
"""
Slots module.

calculator:   recurring windows → slot start instants (pure)
availability: slot list of a link annotated with taken flags and link usage
              (import from .availability directly, it needs the database layer)
"""

from .config import BookingConfig, Weekday, get_booking_config
from .calculator import SlotSequence, WindowRule, generate_slots

__all__ = [
    "BookingConfig",
    "Weekday",
    "get_booking_config",
    "SlotSequence",
    "WindowRule",
    "generate_slots",
]

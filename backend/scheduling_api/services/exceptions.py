"""
Error hierarchy of the scheduling engine.

Every error carries a machine-readable ``code`` and the HTTP status the web
layer answers with. Rejections (expired link, usage limit, taken slot) are
normal outcomes under concurrency; only ``StoreUnavailable`` signals an
infrastructure fault and is worth retrying.
"""


class SchedulingError(Exception):
    """Base class for all engine-level errors."""

    code = "scheduling_error"
    status_code = 400
    default_message = "Scheduling request rejected"

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class LinkNotFound(NotFound):
    default_message = "Invalid scheduling link"


class AdvisorNotFound(NotFound):
    default_message = "Advisor not found"


class BookingNotFound(NotFound):
    default_message = "Booking not found"


class LinkExpired(SchedulingError):
    code = "expired"
    default_message = "This scheduling link has expired"


class UsageLimitReached(SchedulingError):
    code = "usage_limit_reached"
    default_message = "This scheduling link has reached its usage limit"


class SlotTaken(SchedulingError):
    code = "slot_taken"
    default_message = "This time slot is already booked"


class SchedulingValidationError(SchedulingError):
    code = "validation_error"
    default_message = "Invalid scheduling data"


class SlugGenerationExhausted(SchedulingError):
    code = "slug_generation_exhausted"
    status_code = 503
    default_message = "Failed to generate unique slug"


class StoreUnavailable(SchedulingError):
    code = "unavailable"
    status_code = 503
    default_message = "Booking store is temporarily unavailable, please retry"

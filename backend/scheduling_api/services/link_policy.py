# backend/scheduling_api/services/link_policy.py
"""
Link policy: expiration and usage cap of a scheduling link.

The decision does not depend on the chosen slot. It is computed twice per
booking: once when availability is listed (to gray out slots and show the
remaining-usage counter) and once, authoritatively, inside the booking
transaction with a freshly counted usage.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .exceptions import LinkExpired, UsageLimitReached


class PolicyDecision(str, Enum):
    ADMIT = "admit"
    DENY_EXPIRED = "deny_expired"
    DENY_USAGE_LIMIT_REACHED = "deny_usage_limit_reached"


@dataclass(frozen=True)
class LinkUsage:
    """Usage snapshot of a link at evaluation time."""
    current_usage: int
    usage_limit: Optional[int]
    expires_at: Optional[datetime]
    decision: PolicyDecision

    @property
    def is_usage_limit_reached(self) -> bool:
        return self.usage_limit is not None and self.current_usage >= self.usage_limit

    @property
    def remaining_usage(self) -> Optional[int]:
        if self.usage_limit is None:
            return None
        return max(self.usage_limit - self.current_usage, 0)


def evaluate_link_policy(link, current_usage: int, now: datetime) -> PolicyDecision:
    """
    Rules, in order:
    1. expires_at set and now > expires_at   → DENY_EXPIRED
    2. usage_limit set and usage >= limit    → DENY_USAGE_LIMIT_REACHED
    3. otherwise                             → ADMIT
    """
    if link.expires_at is not None and now > link.expires_at:
        return PolicyDecision.DENY_EXPIRED
    if link.usage_limit is not None and current_usage >= link.usage_limit:
        return PolicyDecision.DENY_USAGE_LIMIT_REACHED
    return PolicyDecision.ADMIT


def link_usage(link, current_usage: int, now: datetime) -> LinkUsage:
    return LinkUsage(
        current_usage=current_usage,
        usage_limit=link.usage_limit,
        expires_at=link.expires_at,
        decision=evaluate_link_policy(link, current_usage, now),
    )


def raise_for_decision(decision: PolicyDecision, link, current_usage: int) -> None:
    """Turn a denial into the matching rejection; ADMIT passes through."""
    if decision is PolicyDecision.DENY_EXPIRED:
        raise LinkExpired(expires_at=link.expires_at)
    if decision is PolicyDecision.DENY_USAGE_LIMIT_REACHED:
        raise UsageLimitReached(
            f"This scheduling link has reached its limit of {link.usage_limit} bookings",
            current_usage=current_usage,
            limit=link.usage_limit,
        )

"""
Tests for the link policy.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from scheduling_api.services.exceptions import LinkExpired, UsageLimitReached
from scheduling_api.services.link_policy import (
    PolicyDecision,
    evaluate_link_policy,
    link_usage,
    raise_for_decision,
)

NOW = datetime(2024, 11, 25, 8, 0)


def link(usage_limit=None, expires_at=None):
    return SimpleNamespace(usage_limit=usage_limit, expires_at=expires_at)


class TestEvaluateLinkPolicy:

    def test_unrestricted_link_admits(self):
        assert evaluate_link_policy(link(), 1000, NOW) is PolicyDecision.ADMIT

    def test_expired(self):
        expired = link(expires_at=NOW - timedelta(minutes=1))
        assert evaluate_link_policy(expired, 0, NOW) is PolicyDecision.DENY_EXPIRED

    def test_expiry_instant_itself_still_admits(self):
        assert evaluate_link_policy(link(expires_at=NOW), 0, NOW) is PolicyDecision.ADMIT

    @pytest.mark.parametrize("usage,expected", [
        (0, PolicyDecision.ADMIT),
        (2, PolicyDecision.ADMIT),
        (3, PolicyDecision.DENY_USAGE_LIMIT_REACHED),
        (4, PolicyDecision.DENY_USAGE_LIMIT_REACHED),
    ])
    def test_usage_limit(self, usage, expected):
        assert evaluate_link_policy(link(usage_limit=3), usage, NOW) is expected

    def test_expiry_wins_over_usage_limit(self):
        both = link(usage_limit=1, expires_at=NOW - timedelta(days=1))
        assert evaluate_link_policy(both, 5, NOW) is PolicyDecision.DENY_EXPIRED


class TestLinkUsage:

    def test_counters(self):
        usage = link_usage(link(usage_limit=3), 1, NOW)

        assert usage.decision is PolicyDecision.ADMIT
        assert usage.remaining_usage == 2
        assert usage.is_usage_limit_reached is False

    def test_counters_without_limit(self):
        usage = link_usage(link(), 7, NOW)

        assert usage.remaining_usage is None
        assert usage.is_usage_limit_reached is False

    def test_remaining_never_negative(self):
        usage = link_usage(link(usage_limit=2), 5, NOW)

        assert usage.remaining_usage == 0
        assert usage.is_usage_limit_reached is True


class TestRaiseForDecision:

    def test_admit_passes(self):
        raise_for_decision(PolicyDecision.ADMIT, link(), 0)

    def test_expired_raises(self):
        expires_at = NOW - timedelta(hours=1)
        with pytest.raises(LinkExpired) as exc_info:
            raise_for_decision(PolicyDecision.DENY_EXPIRED, link(expires_at=expires_at), 0)

        assert exc_info.value.code == "expired"
        assert exc_info.value.details["expires_at"] == expires_at

    def test_usage_limit_raises_with_counters(self):
        with pytest.raises(UsageLimitReached) as exc_info:
            raise_for_decision(PolicyDecision.DENY_USAGE_LIMIT_REACHED, link(usage_limit=2), 2)

        assert exc_info.value.code == "usage_limit_reached"
        assert exc_info.value.details == {"current_usage": 2, "limit": 2}

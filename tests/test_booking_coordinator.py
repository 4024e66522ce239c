"""
Tests for the booking transaction coordinator, including concurrent commits.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from conftest import ALL_WEEK, MONDAY_MORNING
from scheduling_api.models.tables import Bookings
from scheduling_api.services import ledger
from scheduling_api.services.booking_coordinator import BookingRequest, commit_booking
from scheduling_api.services.exceptions import (
    LinkExpired,
    LinkNotFound,
    SchedulingError,
    SchedulingValidationError,
    SlotTaken,
    StoreUnavailable,
    UsageLimitReached,
)

NINE = datetime(2024, 11, 25, 9, 0)
NINE_THIRTY = datetime(2024, 11, 25, 9, 30)


@pytest.fixture
def advisor_id(make_advisor, add_window):
    advisor_id = make_advisor()
    add_window(advisor_id, "09:00", "12:00", ALL_WEEK)
    return advisor_id


@pytest.fixture
def book(session_factory, answers):
    """Commit one booking in its own session."""

    def _book(link_id, scheduled_time, email="visitor@example.com", now=MONDAY_MORNING, **kwargs):
        kwargs.setdefault("answers", answers)
        with session_factory() as db:
            return commit_booking(
                db,
                BookingRequest(link_id=link_id, scheduled_time=scheduled_time, email=email, **kwargs),
                now=now,
            )

    return _book


def booking_count(session_factory) -> int:
    with session_factory() as db:
        return db.query(Bookings).count()


class TestCommitBooking:

    def test_success(self, session_factory, advisor_id, make_link, book):
        link_id = make_link(advisor_id)

        booking = book(link_id, NINE, linkedin_url="https://www.linkedin.com/in/visitor")

        assert booking.id is not None
        assert booking.advisor_id == advisor_id
        assert booking.scheduled_time == NINE
        assert booking.answer_list == [
            {"question": "What would you like to discuss?", "answer": "Retirement planning"},
        ]
        with session_factory() as db:
            assert ledger.count_link_usage(db, link_id) == 1

    def test_aware_time_is_normalized(self, advisor_id, make_link, book):
        link_id = make_link(advisor_id)
        paris = timezone(timedelta(hours=1))

        booking = book(link_id, datetime(2024, 11, 25, 10, 0, tzinfo=paris))

        assert booking.scheduled_time == NINE

    def test_unknown_link(self, session_factory, book):
        with pytest.raises(LinkNotFound):
            book(999, NINE)
        assert booking_count(session_factory) == 0

    def test_expired_link_wins_over_bad_slot(self, session_factory, advisor_id, make_link, book):
        link_id = make_link(advisor_id, expires_at=MONDAY_MORNING - timedelta(hours=1))

        with pytest.raises(LinkExpired):
            book(link_id, datetime(2024, 11, 25, 9, 7))
        assert booking_count(session_factory) == 0

    def test_usage_limit(self, session_factory, advisor_id, make_link, book):
        link_id = make_link(advisor_id, usage_limit=2)

        book(link_id, NINE, email="a@example.com")
        book(link_id, NINE_THIRTY, email="b@example.com")
        with pytest.raises(UsageLimitReached) as exc_info:
            book(link_id, datetime(2024, 11, 25, 10, 0), email="c@example.com")

        assert exc_info.value.details == {"current_usage": 2, "limit": 2}
        assert booking_count(session_factory) == 2

    def test_slot_taken_across_links(self, session_factory, advisor_id, make_link, book):
        first_link = make_link(advisor_id)
        second_link = make_link(advisor_id, meeting_length=60)

        book(first_link, NINE)
        with pytest.raises(SlotTaken):
            book(second_link, NINE, email="other@example.com")

        assert booking_count(session_factory) == 1

    def test_other_advisor_same_instant(self, session_factory, advisor_id, make_advisor, add_window, make_link, book):
        other_id = make_advisor()
        add_window(other_id, "09:00", "12:00", ALL_WEEK)

        book(make_link(advisor_id), NINE)
        book(make_link(other_id), NINE)

        assert booking_count(session_factory) == 2

    @pytest.mark.parametrize("scheduled_time", [
        datetime(2024, 11, 25, 9, 15),   # off the grid
        datetime(2024, 11, 25, 11, 45),  # trailing partial slot
        datetime(2024, 11, 25, 7, 0),    # outside the window
        datetime(2024, 11, 24, 9, 0),    # before now
        datetime(2024, 12, 10, 9, 0),    # past the horizon
    ])
    def test_slot_not_offered(self, session_factory, advisor_id, make_link, book, scheduled_time):
        link_id = make_link(advisor_id, max_advance_days=14)

        with pytest.raises(SchedulingValidationError):
            book(link_id, scheduled_time)
        assert booking_count(session_factory) == 0

    def test_required_answer_missing(self, session_factory, advisor_id, make_link, book):
        link_id = make_link(advisor_id, questions=[
            {"question": "Goals?", "required": True},
            {"question": "Anything else?", "required": False},
        ])

        with pytest.raises(SchedulingValidationError) as exc_info:
            book(link_id, NINE, answers=[{"question": "Goals?", "answer": "   "}])

        assert exc_info.value.details["missing"] == ["Goals?"]
        assert booking_count(session_factory) == 0

    def test_optional_answer_may_be_omitted(self, advisor_id, make_link, book):
        link_id = make_link(advisor_id, questions=[
            {"question": "Goals?", "required": True},
            {"question": "Anything else?", "required": False},
        ])

        booking = book(link_id, NINE, answers=[{"question": "Goals?", "answer": "Grow savings"}])

        assert booking.answer_list == [{"question": "Goals?", "answer": "Grow savings"}]

    def test_store_failure_is_unavailable(self, session_factory, advisor_id, make_link, book, monkeypatch):
        link_id = make_link(advisor_id)

        def locked(db, link_id):
            raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))

        monkeypatch.setattr(ledger, "count_link_usage", locked)

        with pytest.raises(StoreUnavailable) as exc_info:
            book(link_id, NINE)

        assert exc_info.value.status_code == 503
        assert booking_count(session_factory) == 0


class TestConcurrentCommits:
    """Several visitors submitting at the same moment, one thread each."""

    def run_concurrently(self, session_factory, requests):
        barrier = threading.Barrier(len(requests))
        outcomes = [None] * len(requests)

        def worker(index, request):
            barrier.wait()
            db = session_factory()
            try:
                outcomes[index] = commit_booking(db, request, now=MONDAY_MORNING)
            except SchedulingError as exc:
                outcomes[index] = exc
            finally:
                db.close()

        threads = [
            threading.Thread(target=worker, args=(i, r))
            for i, r in enumerate(requests)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        return outcomes

    def test_same_slot_one_winner(self, session_factory, advisor_id, make_link, answers):
        link_id = make_link(advisor_id)
        requests = [
            BookingRequest(link_id, NINE, f"visitor{i}@example.com", answers=answers)
            for i in range(4)
        ]

        outcomes = self.run_concurrently(session_factory, requests)

        winners = [o for o in outcomes if isinstance(o, Bookings)]
        losers = [o for o in outcomes if isinstance(o, SchedulingError)]
        assert len(winners) == 1
        assert len(losers) == 3
        assert all(isinstance(o, SlotTaken) for o in losers)
        assert booking_count(session_factory) == 1

    def test_same_slot_through_different_links(self, session_factory, advisor_id, make_link, answers):
        requests = [
            BookingRequest(make_link(advisor_id), NINE, f"visitor{i}@example.com", answers=answers)
            for i in range(3)
        ]

        outcomes = self.run_concurrently(session_factory, requests)

        assert sum(isinstance(o, Bookings) for o in outcomes) == 1
        assert sum(isinstance(o, SlotTaken) for o in outcomes) == 2

    def test_last_use_of_link(self, session_factory, advisor_id, make_link, answers):
        link_id = make_link(advisor_id, usage_limit=1)
        requests = [
            BookingRequest(link_id, NINE, "a@example.com", answers=answers),
            BookingRequest(link_id, NINE_THIRTY, "b@example.com", answers=answers),
        ]

        outcomes = self.run_concurrently(session_factory, requests)

        assert sum(isinstance(o, Bookings) for o in outcomes) == 1
        assert sum(isinstance(o, UsageLimitReached) for o in outcomes) == 1
        with session_factory() as db:
            assert ledger.count_link_usage(db, link_id) == 1

    def test_distinct_slots_all_succeed(self, session_factory, advisor_id, make_link, answers):
        link_id = make_link(advisor_id, usage_limit=10)
        times = [NINE + timedelta(minutes=30 * i) for i in range(5)]
        requests = [
            BookingRequest(link_id, t, f"visitor{i}@example.com", answers=answers)
            for i, t in enumerate(times)
        ]

        outcomes = self.run_concurrently(session_factory, requests)

        assert all(isinstance(o, Bookings) for o in outcomes)
        assert booking_count(session_factory) == 5

"""
Shared fixtures: a throwaway SQLite file database per test, a FastAPI test
client bound to it and a recording stand-in for the Redis event queue.
"""

import json
from datetime import datetime
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from scheduling_api.database import build_engine, get_db, init_db, make_session_factory
from scheduling_api.main import app
from scheduling_api.models.tables import Advisors, AvailabilityWindows, SchedulingLinks
from scheduling_api.services import events

ALL_WEEK = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]

# Monday
MONDAY_MORNING = datetime(2024, 11, 25, 8, 0)


class RecordingRedis:
    """Collects what would have been pushed to Redis."""

    def __init__(self):
        self.pushed: list[tuple[str, dict]] = []

    def rpush(self, key, value):
        self.pushed.append((key, json.loads(value)))
        return len(self.pushed)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'scheduling.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(autouse=True)
def event_queue(monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(events, "redis_client", fake)
    return fake


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Factories (each one commits and closes its own session) ──────────────


@pytest.fixture
def make_advisor(session_factory):
    counter = {"n": 0}

    def _make(email: Optional[str] = None, name: str = "Advisor") -> int:
        counter["n"] += 1
        with session_factory() as db:
            advisor = Advisors(email=email or f"advisor{counter['n']}@example.com", name=name)
            db.add(advisor)
            db.commit()
            return advisor.id

    return _make


@pytest.fixture
def add_window(session_factory):
    def _add(advisor_id: int, start: str, end: str, weekdays: list[str]) -> int:
        with session_factory() as db:
            window = AvailabilityWindows(
                advisor_id=advisor_id,
                start_time=start,
                end_time=end,
                weekdays=json.dumps(weekdays),
            )
            db.add(window)
            db.commit()
            return window.id

    return _add


@pytest.fixture
def make_link(session_factory):
    counter = {"n": 0}

    def _make(
        advisor_id: int,
        meeting_length: int = 30,
        max_advance_days: int = 14,
        usage_limit: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        questions: Optional[list[dict]] = None,
    ) -> int:
        counter["n"] += 1
        if questions is None:
            questions = [{"question": "What would you like to discuss?", "required": True}]
        with session_factory() as db:
            link = SchedulingLinks(
                advisor_id=advisor_id,
                slug=f"test-slug-{counter['n']}",
                meeting_length=meeting_length,
                max_advance_days=max_advance_days,
                usage_limit=usage_limit,
                expires_at=expires_at,
                custom_questions=json.dumps(questions),
            )
            db.add(link)
            db.commit()
            return link.id

    return _make


@pytest.fixture
def answers():
    return [{"question": "What would you like to discuss?", "answer": "Retirement planning"}]

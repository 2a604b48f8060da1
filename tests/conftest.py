"""Shared test fixtures for BufferGuard tests.

This module provides common fixtures used across all test modules:
- A fixed clock and caller identity
- The default policy and config
- An event factory producing accepted video-call meetings by default
- An in-memory calendar store

Usage:
    def test_something(make_event, policy):
        event = make_event(title="Design Review")
        ...
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import structlog

from bufferguard.calendar.models import Attendee, CalendarEvent
from bufferguard.calendar.providers.memory import InMemoryCalendarAdapter
from bufferguard.policies.config_models import BufferGuardConfig, BufferPolicy


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"

# Monday morning, well inside any lookahead
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

ME = "me@example.com"
COLLEAGUE = "colleague@example.com"
ZOOM_LINK = "https://zoom.us/j/98765432100"


def at(hour: int, minute: int = 0) -> datetime:
    """Instant on the test day."""
    return NOW.replace(hour=hour, minute=minute)


# ─────────────────────────────────────────────────────────────────────────────
# Clock / Identity Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def identity() -> str:
    return ME


# ─────────────────────────────────────────────────────────────────────────────
# Policy Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def policy() -> BufferPolicy:
    """Default policy with a guest ceiling of 30."""
    return BufferPolicy(guest_ceiling=30)


@pytest.fixture
def config(policy: BufferPolicy) -> BufferGuardConfig:
    return BufferGuardConfig(policy=policy)


# ─────────────────────────────────────────────────────────────────────────────
# Event Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_event():
    """Factory for events.

    Defaults: a 60 minute Zoom meeting at 10:00 organized by a colleague
    and accepted by ME.
    """
    counter = {"n": 0}

    def _make(
        title: str = "Design Review",
        start: datetime | None = None,
        minutes: int = 60,
        location: str = ZOOM_LINK,
        description: str = "",
        status: str = "accepted",
        attendees: list[Attendee] | None = None,
        organizer: str = COLLEAGUE,
        calendar_id: str = "primary",
        all_day: bool = False,
        meeting_link: str | None = None,
        event_id: str | None = None,
    ) -> CalendarEvent:
        counter["n"] += 1
        start = start or at(10)
        if attendees is None:
            attendees = [
                Attendee(email=COLLEAGUE, status="accepted", is_organizer=True),
                Attendee(email=ME, status=status),
            ]
        return CalendarEvent(
            event_id=event_id or f"evt-{counter['n']}",
            calendar_id=calendar_id,
            title=title,
            description=description,
            location=location,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            all_day=all_day,
            organizer=Attendee(email=organizer, is_organizer=True, status="accepted") if organizer else None,
            attendees=attendees,
            meeting_link=meeting_link,
        )

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# Adapter Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> InMemoryCalendarAdapter:
    """Empty in-memory calendar owned by ME."""
    return InMemoryCalendarAdapter(identity=ME)


# ─────────────────────────────────────────────────────────────────────────────
# Logging Isolation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _isolate_logging():
    """setup_logging() installs a root handler bound to the test's stderr; drop it afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()

"""
Tool: Calendar Models
Purpose: Data structures for calendar events, guests and time intervals

Usage:
    from bufferguard.calendar.models import CalendarEvent, Attendee, Interval

These are the read-only views the engine works on. Adapters normalize
provider payloads (Google Calendar, in-memory fixtures) into them.
"""

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


class InvalidIntervalError(ValueError):
    """Raised when an interval does not satisfy start < end."""


class ResponseStatus(str, Enum):
    """Guest response status as reported by the calendar provider."""

    ACCEPTED = "accepted"
    DECLINED = "declined"
    TENTATIVE = "tentative"
    NEEDS_ACTION = "needsAction"

    @classmethod
    def parse(cls, value: str | None) -> "ResponseStatus | None":
        """Map a provider status string, returning None when unrecognized."""
        if not value:
            return None
        for item in cls:
            if item.value.lower() == value.lower():
                return item
        return None


@dataclass(frozen=True)
class Interval:
    """
    Half-open time interval [start, end).

    Construction does not enforce ordering so that degenerate buffer
    windows can be planned and then rejected explicitly by `validate()`.
    """

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    def validate(self) -> "Interval":
        """Return self, or raise InvalidIntervalError when start >= end."""
        if not self.is_valid:
            raise InvalidIntervalError(
                f"Interval start {self.start.isoformat()} is not before end {self.end.isoformat()}"
            )
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Strict overlap: touching at a boundary instant is not an overlap."""
        return start < self.end and end > self.start

    def widened(self, margin: timedelta) -> "Interval":
        return Interval(start=self.start - margin, end=self.end + margin)

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class Attendee:
    """
    Calendar event guest.
    """

    email: str
    name: str | None = None
    status: str = ResponseStatus.NEEDS_ACTION.value
    is_organizer: bool = False
    is_self: bool = False
    is_optional: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attendee":
        return cls(**data)


@dataclass
class CalendarEvent:
    """
    Normalized calendar event.

    Duration is derived from start and end, never stored. Recurring events
    arrive already expanded into concrete instances by the adapter.
    """

    event_id: str
    calendar_id: str = "primary"

    # Event details
    title: str = ""
    description: str = ""
    location: str = ""

    # Timing
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    all_day: bool = False

    # Participants
    organizer: Attendee | None = None
    attendees: list[Attendee] = field(default_factory=list)

    # Meeting
    meeting_link: str | None = None

    # Provider-specific
    provider: str = ""
    raw_data: dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        return int(self.duration.total_seconds() / 60)

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start_time, end=self.end_time)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d = asdict(self)
        d["start_time"] = self.start_time.isoformat()
        d["end_time"] = self.end_time.isoformat()
        d.pop("raw_data", None)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CalendarEvent":
        """Create from dict."""
        data = data.copy()
        for time_field in ["start_time", "end_time"]:
            if isinstance(data.get(time_field), str):
                data[time_field] = datetime.fromisoformat(data[time_field])
        if data.get("organizer") and isinstance(data["organizer"], dict):
            data["organizer"] = Attendee.from_dict(data["organizer"])
        if data.get("attendees"):
            data["attendees"] = [
                Attendee.from_dict(a) if isinstance(a, dict) else a
                for a in data["attendees"]
            ]
        return cls(**data)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    @staticmethod
    def generate_id() -> str:
        """Generate a new local event ID."""
        return uuid.uuid4().hex

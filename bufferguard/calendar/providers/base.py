"""
Tool: Calendar Adapter Base
Purpose: Abstract interface to the external calendar store

The engine never talks to a calendar API directly. It reads, creates and
deletes entries through this interface so that the Google adapter, the
in-memory store and the dry-run overlay are interchangeable.

Usage:
    from bufferguard.calendar.providers.base import CalendarAdapter, AdapterError
    from bufferguard.calendar.providers.google_calendar import GoogleCalendarAdapter

    adapter = GoogleCalendarAdapter(access_token=token)
    events = await adapter.list_events("primary", start, end)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any

from bufferguard.calendar.models import CalendarEvent, Interval

if TYPE_CHECKING:
    from bufferguard.policies.config_models import VisualStyle


class AdapterError(Exception):
    """Transport or permission failure reported by a calendar adapter."""

    def __init__(
        self,
        message: str,
        adapter_name: str,
        error_code: str | None = None,
        recoverable: bool = True,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.adapter_name = adapter_name
        self.error_code = error_code
        self.recoverable = recoverable
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "adapter": self.adapter_name,
            "code": self.error_code,
            "recoverable": self.recoverable,
        }


class CalendarAdapter(ABC):
    """
    Abstract base class for calendar stores.

    All operations may suspend on I/O. Callers await them sequentially so
    that an entry created for one event is visible to the next query.
    """

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the adapter name (e.g., 'google', 'memory')."""
        pass

    @abstractmethod
    async def current_identity(self) -> str:
        """
        Email/user identity of the calendar owner.

        Used for attendance checks. Raises AdapterError when it cannot be
        resolved.
        """
        pass

    @abstractmethod
    async def list_events(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        """
        Get events overlapping a time range.

        Args:
            calendar_id: Calendar to query
            start: Start of range
            end: End of range

        Returns:
            List of CalendarEvent objects, recurring events expanded
        """
        pass

    @abstractmethod
    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        """Get a single event, raising AdapterError if it does not exist."""
        pass

    @abstractmethod
    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        interval: Interval,
    ) -> CalendarEvent:
        """
        Create a calendar entry.

        Raises:
            AdapterError: on any transport or permission failure
        """
        pass

    @abstractmethod
    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        pass

    @abstractmethod
    async def set_visual_style(
        self,
        event_id: str,
        style: VisualStyle,
        calendar_id: str = "primary",
    ) -> None:
        """Apply color/availability styling to an existing entry."""
        pass

    def conference_entry_points(self, event: CalendarEvent) -> list[str]:
        """
        Structured conference-data lookup.

        Providers that expose conference entry points (join URLs, dial-in
        URIs) separately from free text override this. Default: none.
        """
        return []

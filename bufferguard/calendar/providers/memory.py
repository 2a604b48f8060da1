"""
Tool: In-Memory Calendar Adapters
Purpose: Process-local calendar store and a dry-run write overlay

InMemoryCalendarAdapter keeps events in a dict keyed by calendar. Range
queries are inclusive at both ends, like a boundary-inclusive provider
query, so callers that care about touching neighbors see them.

DryRunAdapter wraps any adapter: reads go to the wrapped store, writes are
recorded in an in-memory overlay that is merged back into later reads.
Within one pass, planned buffers therefore block later conflicting ones
exactly as real ones would, but nothing reaches the real calendar.

Usage:
    from bufferguard.calendar.providers.memory import DryRunAdapter, InMemoryCalendarAdapter

    store = InMemoryCalendarAdapter(identity="me@example.com", events=[...])
    preview = DryRunAdapter(GoogleCalendarAdapter(access_token=token))
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from bufferguard.calendar.models import CalendarEvent, Interval
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter

if TYPE_CHECKING:
    from bufferguard.policies.config_models import VisualStyle


class InMemoryCalendarAdapter(CalendarAdapter):
    """Calendar store held in process memory."""

    def __init__(self, identity: str = "", events: list[CalendarEvent] | None = None):
        self.identity = identity
        self.calendars: dict[str, dict[str, CalendarEvent]] = {}
        self.styles: dict[str, VisualStyle] = {}
        for event in events or []:
            self.add(event)

    @property
    def adapter_name(self) -> str:
        return "memory"

    def add(self, event: CalendarEvent) -> CalendarEvent:
        self.calendars.setdefault(event.calendar_id, {})[event.event_id] = event
        return event

    def all_events(self, calendar_id: str | None = None) -> list[CalendarEvent]:
        if calendar_id is not None:
            return list(self.calendars.get(calendar_id, {}).values())
        return [e for cal in self.calendars.values() for e in cal.values()]

    async def current_identity(self) -> str:
        if not self.identity:
            raise AdapterError("No identity configured", adapter_name=self.adapter_name)
        return self.identity

    async def list_events(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        events = [
            e for e in self.calendars.get(calendar_id, {}).values()
            if e.start_time <= end and e.end_time >= start
        ]
        return sorted(events, key=lambda e: (e.start_time, e.end_time))

    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        event = self.calendars.get(calendar_id, {}).get(event_id)
        if event is None:
            raise AdapterError(
                f"Event not found: {event_id}",
                adapter_name=self.adapter_name,
                error_code="404",
            )
        return event

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        interval: Interval,
    ) -> CalendarEvent:
        event = CalendarEvent(
            event_id=CalendarEvent.generate_id(),
            calendar_id=calendar_id,
            title=title,
            description=description,
            start_time=interval.start,
            end_time=interval.end,
            provider=self.adapter_name,
        )
        return self.add(event)

    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        self.calendars.get(calendar_id, {}).pop(event_id, None)
        self.styles.pop(event_id, None)

    async def set_visual_style(
        self,
        event_id: str,
        style: VisualStyle,
        calendar_id: str = "primary",
    ) -> None:
        if event_id not in self.calendars.get(calendar_id, {}):
            raise AdapterError(
                f"Event not found: {event_id}",
                adapter_name=self.adapter_name,
                error_code="404",
            )
        self.styles[event_id] = style


class DryRunAdapter(CalendarAdapter):
    """Read-through adapter that records writes instead of performing them."""

    def __init__(self, inner: CalendarAdapter):
        self.inner = inner
        self.overlay = InMemoryCalendarAdapter()
        self.deleted: list[tuple[str, str]] = []

    @property
    def adapter_name(self) -> str:
        return f"dry-run:{self.inner.adapter_name}"

    @property
    def planned_creates(self) -> list[CalendarEvent]:
        return self.overlay.all_events()

    async def current_identity(self) -> str:
        return await self.inner.current_identity()

    async def list_events(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        deleted_ids = {event_id for event_id, _ in self.deleted}
        events = [
            e for e in await self.inner.list_events(calendar_id, start, end)
            if e.event_id not in deleted_ids
        ]
        events.extend(await self.overlay.list_events(calendar_id, start, end))
        return sorted(events, key=lambda e: (e.start_time, e.end_time))

    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        try:
            return await self.overlay.get_event(calendar_id, event_id)
        except AdapterError:
            return await self.inner.get_event(calendar_id, event_id)

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        interval: Interval,
    ) -> CalendarEvent:
        return await self.overlay.create_event(calendar_id, title, description, interval)

    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        self.deleted.append((event_id, calendar_id))
        await self.overlay.delete_event(event_id, calendar_id)

    async def set_visual_style(
        self,
        event_id: str,
        style: VisualStyle,
        calendar_id: str = "primary",
    ) -> None:
        self.overlay.styles[event_id] = style

    def conference_entry_points(self, event: CalendarEvent) -> list[str]:
        return self.inner.conference_entry_points(event)

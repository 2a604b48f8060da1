"""
Tool: Google Calendar Adapter
Purpose: Google Calendar integration via the Calendar API v3

Implements the CalendarAdapter interface for Google Calendar. Recurring
events are requested expanded (singleEvents=true) so the engine only ever
sees concrete instances.

Usage:
    from bufferguard.calendar.providers.google_calendar import GoogleCalendarAdapter

    adapter = GoogleCalendarAdapter(access_token=token)
    events = await adapter.list_events("primary", start, end)

Dependencies:
    - aiohttp (pip install aiohttp)
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import aiohttp

from bufferguard.calendar.models import Attendee, CalendarEvent, Interval
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter
from bufferguard.logging_config import get_logger

if TYPE_CHECKING:
    from bufferguard.policies.config_models import VisualStyle

logger = get_logger(__name__)

# Google API endpoints
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"

# Statuses meaning the entry is already gone
GONE_STATUSES = {404, 410}

# Whole-request budget, connect through body
DEFAULT_TIMEOUT_SECONDS = 30.0


def format_api_time(value: datetime) -> str:
    """Render a datetime as RFC3339 UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_api_time(data: dict[str, Any]) -> tuple[datetime, bool]:
    """Parse a Google start/end object, returning (instant, is_all_day)."""
    if "date" in data:
        day = datetime.fromisoformat(data["date"])
        return day.replace(tzinfo=timezone.utc), True
    return datetime.fromisoformat(data.get("dateTime", "").replace("Z", "+00:00")), False


class GoogleCalendarAdapter(CalendarAdapter):
    """
    Google Calendar adapter.

    Every public method raises AdapterError on a failed API call; the raw
    request helpers return result dicts so failures can be inspected
    before being raised.
    """

    def __init__(
        self,
        access_token: str,
        max_results: int = 250,
        session: aiohttp.ClientSession | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the adapter.

        Args:
            access_token: OAuth bearer token with calendar scope
            max_results: Page size for event listing
            session: Optional shared aiohttp session
            timeout_seconds: Total time allowed per API request
        """
        self.access_token = access_token
        self.max_results = max_results
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session

    @property
    def adapter_name(self) -> str:
        return "google"

    def _get_headers(self) -> dict[str, str]:
        """Get authorization headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        data: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method
            url: Full API URL
            data: Request body (for POST/PATCH)
            params: Query parameters

        Returns:
            dict with response data or error
        """
        headers = self._get_headers()
        kwargs = {"headers": headers, "json": data, "params": params, "timeout": self.timeout}

        try:
            if self._session is not None:
                async with self._session.request(method, url, **kwargs) as resp:
                    return await self._handle_response(resp)
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, **kwargs) as resp:
                    return await self._handle_response(resp)
        except asyncio.TimeoutError:
            return {"success": False, "status": None, "error": f"Request timed out after {self.timeout.total}s"}
        except aiohttp.ClientError as e:
            return {"success": False, "status": None, "error": f"Request failed: {e!s}"}

    async def _handle_response(self, resp) -> dict[str, Any]:
        """Handle API response."""
        if resp.status == 204:
            return {"success": True, "status": 204}

        try:
            data = await resp.json()
        except (aiohttp.ContentTypeError, ValueError):
            data = {}
        # Empty bodies decode to None
        if not isinstance(data, dict):
            data = {}

        if resp.status == 200:
            return {"success": True, "status": 200, "data": data}
        elif resp.status == 401:
            return {"success": False, "status": 401, "error": "Authentication failed - token may be expired"}
        elif resp.status == 403:
            return {"success": False, "status": 403, "error": "Permission denied - insufficient scopes"}
        elif resp.status in GONE_STATUSES:
            return {"success": False, "status": resp.status, "error": "Resource not found"}
        else:
            error = data.get("error")
            if isinstance(error, dict):
                error_msg = error.get("message") or f"HTTP {resp.status}"
            elif isinstance(error, str) and error:
                error_msg = error
            else:
                error_msg = f"HTTP {resp.status}"
            return {"success": False, "status": resp.status, "error": error_msg}

    def _raise_for(self, result: dict[str, Any], operation: str) -> None:
        if result.get("success"):
            return
        status = result.get("status")
        raise AdapterError(
            f"{operation} failed: {result.get('error', 'unknown error')}",
            adapter_name=self.adapter_name,
            error_code=str(status) if status else None,
            recoverable=status not in (401, 403),
        )

    def _events_url(self, calendar_id: str, event_id: str | None = None) -> str:
        url = f"{CALENDAR_API_BASE}/calendars/{quote(calendar_id, safe='@')}/events"
        if event_id:
            url += f"/{quote(event_id, safe='')}"
        return url

    # =========================================================================
    # Identity
    # =========================================================================

    async def current_identity(self) -> str:
        """The primary calendar's id is the owner's email address."""
        result = await self._make_request("GET", f"{CALENDAR_API_BASE}/calendars/primary")
        self._raise_for(result, "Identity lookup")
        identity = result.get("data", {}).get("id", "")
        if not identity:
            raise AdapterError("Primary calendar has no id", adapter_name=self.adapter_name)
        return identity

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def list_events(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        """Get events in a date range, following pagination."""
        params: dict[str, Any] = {
            "timeMin": format_api_time(start),
            "timeMax": format_api_time(end),
            "maxResults": self.max_results,
            "singleEvents": "true",
            "orderBy": "startTime",
        }

        events: list[CalendarEvent] = []
        while True:
            result = await self._make_request("GET", self._events_url(calendar_id), params=params)
            self._raise_for(result, f"Listing events on {calendar_id}")

            data = result.get("data", {})
            for item in data.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                events.append(self._parse_calendar_event(item, calendar_id))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token

        logger.debug("events_listed", calendar_id=calendar_id, count=len(events))
        return events

    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        """Get a single calendar event."""
        result = await self._make_request("GET", self._events_url(calendar_id, event_id))
        self._raise_for(result, f"Fetching event {event_id}")
        return self._parse_calendar_event(result.get("data", {}), calendar_id)

    def _parse_calendar_event(self, data: dict, calendar_id: str) -> CalendarEvent:
        """Parse Google Calendar event into CalendarEvent object."""
        start_time, all_day = parse_api_time(data.get("start", {}))
        end_time, _ = parse_api_time(data.get("end", {}))

        # Parse organizer
        org_data = data.get("organizer", {})
        organizer = Attendee(
            email=org_data.get("email", ""),
            name=org_data.get("displayName"),
            is_organizer=True,
            is_self=org_data.get("self", False),
            status="accepted",
        ) if org_data else None

        # Parse attendees
        attendees = []
        for att in data.get("attendees", []):
            attendees.append(Attendee(
                email=att.get("email", ""),
                name=att.get("displayName"),
                status=att.get("responseStatus", "needsAction"),
                is_organizer=att.get("organizer", False),
                is_self=att.get("self", False),
                is_optional=att.get("optional", False),
            ))

        return CalendarEvent(
            event_id=data.get("id", ""),
            calendar_id=calendar_id,
            title=data.get("summary", ""),
            description=data.get("description", "") or "",
            location=data.get("location", "") or "",
            start_time=start_time,
            end_time=end_time,
            all_day=all_day,
            organizer=organizer,
            attendees=attendees,
            meeting_link=data.get("hangoutLink"),
            provider="google",
            raw_data=data,
        )

    def conference_entry_points(self, event: CalendarEvent) -> list[str]:
        """Join URIs from the event's structured conferenceData."""
        conference = event.raw_data.get("conferenceData") or {}
        entry_points = []
        for entry in conference.get("entryPoints", []):
            uri = entry.get("uri")
            if uri:
                entry_points.append(uri)
        return entry_points

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        interval: Interval,
    ) -> CalendarEvent:
        """Create a calendar event."""
        data = {
            "summary": title,
            "description": description,
            "start": {"dateTime": format_api_time(interval.start), "timeZone": "UTC"},
            "end": {"dateTime": format_api_time(interval.end), "timeZone": "UTC"},
            "reminders": {"useDefault": False},
        }

        result = await self._make_request("POST", self._events_url(calendar_id), data=data)
        self._raise_for(result, f"Creating '{title}'")
        return self._parse_calendar_event(result.get("data", {}), calendar_id)

    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        """Delete a calendar event. Deleting an already-gone entry succeeds."""
        result = await self._make_request("DELETE", self._events_url(calendar_id, event_id))
        if not result.get("success") and result.get("status") in GONE_STATUSES:
            logger.info("event_already_deleted", event_id=event_id, calendar_id=calendar_id)
            return
        self._raise_for(result, f"Deleting event {event_id}")

    async def set_visual_style(
        self,
        event_id: str,
        style: VisualStyle,
        calendar_id: str = "primary",
    ) -> None:
        """Apply colorId and transparency to an event."""
        data: dict[str, Any] = {"transparency": "transparent" if style.show_as_free else "opaque"}
        if style.color_id:
            data["colorId"] = style.color_id

        result = await self._make_request("PATCH", self._events_url(calendar_id, event_id), data=data)
        self._raise_for(result, f"Styling event {event_id}")

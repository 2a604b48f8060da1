"""
Tool: Orphan Reconciler
Purpose: Decide which existing buffers no longer sit next to a qualifying meeting

For each buffer (title carries the marker) the kind is read from its title
phrase, then the adjacent window is searched:

    pre-buffer  [s, e)  ->  [e, e + ORPHAN_LOOKOUT]
    post-buffer [s, e)  ->  [s - ORPHAN_LOOKOUT, s]

The classifier is re-run over every event found there. A buffer stays as
long as some event in its window would qualify on its own, even if that is
not the meeting it was created for; its label may then be stale.
Buffers whose window could not be read are kept.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta

from bufferguard.calendar.models import CalendarEvent, Interval
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter
from bufferguard.engine.classifier import classify, is_buffer
from bufferguard.engine.planner import BufferKind, kind_from_title
from bufferguard.logging_config import get_logger, run_context
from bufferguard.policies.config_models import BufferPolicy

logger = get_logger(__name__)

ORPHAN_LOOKOUT = timedelta(hours=1)


def adjacent_window(buffer: CalendarEvent, kind: BufferKind) -> Interval:
    if kind is BufferKind.PRE:
        return Interval(buffer.end_time, buffer.end_time + ORPHAN_LOOKOUT)
    return Interval(buffer.start_time - ORPHAN_LOOKOUT, buffer.start_time)


async def is_orphan(
    buffer: CalendarEvent,
    kind: BufferKind,
    adapter: CalendarAdapter,
    policy: BufferPolicy,
    identity: str | None,
    calendar_ids: Sequence[str],
) -> bool:
    """
    True when no event next to the buffer qualifies.

    Raises:
        AdapterError: if the window cannot be listed
    """
    window = adjacent_window(buffer, kind)
    for calendar_id in calendar_ids:
        for event in await adapter.list_events(calendar_id, window.start, window.end):
            if event.event_id == buffer.event_id:
                continue
            decision = classify(event, policy, identity, adapter.conference_entry_points)
            if decision.should_create_buffers:
                logger.debug("buffer_still_adjacent", meeting_id=event.event_id, calendar_id=calendar_id)
                return False
    logger.debug("adjacent_window_empty", start=window.start.isoformat(), end=window.end.isoformat())
    return True


async def reconcile(
    candidate_buffers: Iterable[CalendarEvent],
    adapter: CalendarAdapter,
    policy: BufferPolicy,
    identity: str | None,
    calendar_ids: Sequence[str] = ("primary",),
) -> list[CalendarEvent]:
    """
    Select buffers to delete.

    Args:
        candidate_buffers: Events to examine; those without the marker are ignored
        adapter: Calendar store used for window lookups
        policy: Active buffer policy
        identity: Caller's email (None if unresolved)
        calendar_ids: Calendars searched for adjacent meetings

    Returns:
        Buffers marked for deletion
    """
    orphans: list[CalendarEvent] = []
    for buffer in candidate_buffers:
        if not is_buffer(buffer, policy):
            continue

        kind = kind_from_title(buffer.title, policy)
        if kind is None:
            logger.warning("buffer_kind_unknown", event_id=buffer.event_id, title=buffer.title)
            continue

        try:
            with run_context(buffer_id=buffer.event_id, buffer_kind=kind.value):
                orphaned = await is_orphan(buffer, kind, adapter, policy, identity, calendar_ids)
        except AdapterError as e:
            logger.error("adapter_error", operation="list_events", buffer_id=buffer.event_id, **e.to_dict())
            continue

        if orphaned:
            logger.info("orphan_detected", event_id=buffer.event_id, title=buffer.title, kind=kind.value)
            orphans.append(buffer)

    return orphans

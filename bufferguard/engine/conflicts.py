"""
Tool: Conflict Filter
Purpose: Find existing events that genuinely contend for a buffer window

Neighbors are first filtered with the same rules the classifier uses:
buffers and all-day events never block, and neither does anything the
classifier would reject as excluded-calendar, too-many-guests or
not-accepted. The survivors block only on strict overlap, so a buffer may
abut a neighbor exactly.
"""

from __future__ import annotations

from collections.abc import Iterable

from bufferguard.calendar.models import CalendarEvent, Interval
from bufferguard.engine.classifier import is_buffer, shared_exclusion
from bufferguard.policies.config_models import BufferPolicy


def counts_as_commitment(
    event: CalendarEvent,
    policy: BufferPolicy,
    identity: str | None,
) -> bool:
    """Whether an existing event may block a buffer at all."""
    if is_buffer(event, policy) or event.all_day:
        return False
    return shared_exclusion(event, policy, identity) is None


def conflicting_with(
    candidate: Interval,
    neighbors: Iterable[CalendarEvent],
    policy: BufferPolicy,
    identity: str | None,
) -> list[CalendarEvent]:
    return [
        event for event in neighbors
        if counts_as_commitment(event, policy, identity)
        and candidate.overlaps(event.start_time, event.end_time)
    ]

"""
Tool: Placement Engine
Purpose: Classify an event, plan its buffers, and create the ones that fit

Per buffer, in order:
    1. validate the interval              -> rejected_by_adapter / invalid-interval
    2. list events in a slightly widened window
    3. same title already there           -> already_exists
    4. a real commitment overlaps         -> conflict
    5. create and style the entry         -> created (adapter failure -> rejected_by_adapter)

The exact-title check is what makes re-runs idempotent. It depends on the
store being re-queried every time; there is no local cache of outcomes.
Pre and post are always both attempted, and a failure on one never stops
the other or the next event.

Usage:
    from bufferguard.engine.placement import place_buffers

    report = await place_buffers(event, policy, adapter, identity, calendar_id="primary")
    for result in report.results:
        print(result.spec.kind, result.outcome)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

from bufferguard.calendar.models import CalendarEvent, InvalidIntervalError
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter
from bufferguard.engine.classifier import Decision, classify
from bufferguard.engine.conflicts import conflicting_with
from bufferguard.engine.planner import BufferSpec, plan_buffers
from bufferguard.logging_config import get_logger
from bufferguard.policies.config_models import BufferPolicy

logger = get_logger(__name__)

# Widening applied to neighbor queries so boundary-touching events are returned
BOUNDARY_MARGIN = timedelta(minutes=1)


class PlacementOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"
    REJECTED_BY_ADAPTER = "rejected_by_adapter"


class RejectionReason(str, Enum):
    INVALID_INTERVAL = "invalid-interval"
    LOOKUP_FAILED = "lookup-failed"
    CREATE_FAILED = "create-failed"


@dataclass
class PlacementResult:
    spec: BufferSpec
    outcome: PlacementOutcome
    reason: RejectionReason | None = None
    event_id: str | None = None  # created or pre-existing buffer
    conflicts: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.spec.to_dict(),
            "outcome": self.outcome.value,
            "reason": self.reason.value if self.reason else None,
            "event_id": self.event_id,
            "conflicts": self.conflicts,
            "error": self.error,
        }


@dataclass
class PlacementReport:
    event_id: str
    title: str
    decision: Decision
    results: list[PlacementResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "title": self.title,
            "decision": self.decision.to_dict(),
            "results": [r.to_dict() for r in self.results],
        }


async def place_buffer(
    spec: BufferSpec,
    policy: BufferPolicy,
    adapter: CalendarAdapter,
    identity: str | None,
    calendar_id: str,
    neighbor_calendar_ids: Sequence[str],
) -> PlacementResult:
    """Attempt a single buffer. Never raises AdapterError."""
    try:
        spec.interval.validate()
    except InvalidIntervalError as e:
        logger.warning("buffer_invalid_interval", title=spec.title, error=str(e))
        return PlacementResult(
            spec=spec,
            outcome=PlacementOutcome.REJECTED_BY_ADAPTER,
            reason=RejectionReason.INVALID_INTERVAL,
            error=str(e),
        )

    window = spec.interval.widened(BOUNDARY_MARGIN)
    neighbors: list[CalendarEvent] = []
    try:
        for neighbor_calendar in neighbor_calendar_ids:
            neighbors.extend(await adapter.list_events(neighbor_calendar, window.start, window.end))
    except AdapterError as e:
        logger.error("adapter_error", operation="list_events", title=spec.title, **e.to_dict())
        return PlacementResult(
            spec=spec,
            outcome=PlacementOutcome.REJECTED_BY_ADAPTER,
            reason=RejectionReason.LOOKUP_FAILED,
            error=str(e),
        )

    for neighbor in neighbors:
        if neighbor.title == spec.title:
            logger.debug("buffer_exists", title=spec.title, event_id=neighbor.event_id)
            return PlacementResult(
                spec=spec,
                outcome=PlacementOutcome.ALREADY_EXISTS,
                event_id=neighbor.event_id,
            )

    blocking = conflicting_with(spec.interval, neighbors, policy, identity)
    if blocking:
        logger.info(
            "buffer_conflict",
            title=spec.title,
            conflicts=[e.title for e in blocking],
        )
        return PlacementResult(
            spec=spec,
            outcome=PlacementOutcome.CONFLICT,
            conflicts=[e.event_id for e in blocking],
        )

    try:
        created = await adapter.create_event(calendar_id, spec.title, spec.description, spec.interval)
    except AdapterError as e:
        logger.error("adapter_error", operation="create_event", title=spec.title, **e.to_dict())
        return PlacementResult(
            spec=spec,
            outcome=PlacementOutcome.REJECTED_BY_ADAPTER,
            reason=RejectionReason.CREATE_FAILED,
            error=str(e),
        )

    # The entry exists either way; a styling failure is only worth a warning
    try:
        await adapter.set_visual_style(created.event_id, policy.visual_style, calendar_id)
    except AdapterError as e:
        logger.warning("buffer_style_failed", event_id=created.event_id, error=str(e))

    logger.info(
        "buffer_created",
        title=spec.title,
        event_id=created.event_id,
        start=spec.interval.start.isoformat(),
        end=spec.interval.end.isoformat(),
    )
    return PlacementResult(spec=spec, outcome=PlacementOutcome.CREATED, event_id=created.event_id)


async def place_buffers(
    event: CalendarEvent,
    policy: BufferPolicy,
    adapter: CalendarAdapter,
    identity: str | None,
    calendar_id: str = "primary",
    neighbor_calendar_ids: Sequence[str] | None = None,
) -> PlacementReport:
    """
    Classify an event and place both of its buffers.

    Args:
        event: Candidate meeting
        policy: Active buffer policy
        adapter: Calendar store
        identity: Caller's email (None if unresolved)
        calendar_id: Calendar receiving the buffers
        neighbor_calendar_ids: Calendars searched for duplicates and conflicts;
            the write calendar is always included

    Returns:
        PlacementReport; results is empty when the event does not qualify
    """
    decision = classify(event, policy, identity, adapter.conference_entry_points)
    report = PlacementReport(event_id=event.event_id, title=event.title, decision=decision)
    if not decision.should_create_buffers:
        logger.debug("event_skipped", event_id=event.event_id, reason=decision.reason_label)
        return report

    calendars = list(dict.fromkeys([calendar_id, *(neighbor_calendar_ids or [])]))
    for spec in plan_buffers(event, policy):
        report.results.append(
            await place_buffer(spec, policy, adapter, identity, calendar_id, calendars)
        )
    return report

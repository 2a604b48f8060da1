"""
Tool: Buffer Runner
Purpose: Batch entry points for the trigger/CLI layer

    run_buffer_pass   place buffers around every qualifying event in the horizon
    run_cleanup_pass  delete buffers whose meeting is gone
    classify_only     explain the decision for a single event

Events are processed one at a time, awaiting every adapter call, so a
buffer created for one meeting is visible to the conflict check of the
next. Nothing is remembered between passes; the calendar is always
re-queried.

Deployment constraint: at most one pass per calendar identity at a time.
The exact-title duplicate check is the only guard against overlapping
runs and it is not a lock.

Usage:
    from bufferguard.engine.runner import run_buffer_pass, run_cleanup_pass

    report = await run_buffer_pass(adapter, config)
    cleanup = await run_cleanup_pass(adapter, config, extended=True)
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from bufferguard.calendar.models import CalendarEvent
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter
from bufferguard.engine.classifier import Decision, classify, is_buffer
from bufferguard.engine.placement import PlacementReport, place_buffers
from bufferguard.engine.reconciler import reconcile
from bufferguard.logging_config import get_logger, run_context
from bufferguard.policies.config_models import BufferGuardConfig

logger = get_logger(__name__)


@dataclass
class BufferPassReport:
    window_start: datetime
    window_end: datetime
    identity: str | None
    events_scanned: int = 0
    reports: list[PlacementReport] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def outcome_counts(self) -> dict[str, int]:
        counts = Counter(
            result.outcome.value
            for report in self.reports
            for result in report.results
        )
        return dict(counts)

    @property
    def qualifying_events(self) -> int:
        return sum(1 for r in self.reports if r.decision.should_create_buffers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "identity": self.identity,
            "events_scanned": self.events_scanned,
            "qualifying_events": self.qualifying_events,
            "outcomes": self.outcome_counts(),
            "events": [r.to_dict() for r in self.reports if r.decision.should_create_buffers],
            "errors": self.errors,
        }


@dataclass
class CleanupReport:
    window_start: datetime
    window_end: datetime
    examined: int = 0
    deleted: list[str] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def kept(self) -> int:
        return self.examined - len(self.deleted) - len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "examined": self.examined,
            "deleted": self.deleted,
            "failed": self.failed,
            "kept": self.kept,
            "errors": self.errors,
        }


def _window(config: BufferGuardConfig, now: datetime | None, extended: bool, horizon: timedelta | None):
    start = now or datetime.now(timezone.utc)
    return start, start + (horizon if horizon is not None else config.policy.horizon(extended))


async def resolve_identity(adapter: CalendarAdapter) -> str | None:
    """Caller identity, or None so that attendance resolves to unknown."""
    try:
        return await adapter.current_identity()
    except AdapterError as e:
        logger.warning("identity_unresolved", **e.to_dict())
        return None


async def collect_events(
    adapter: CalendarAdapter,
    calendar_ids: Sequence[str],
    start: datetime,
    end: datetime,
    errors: list[dict[str, Any]],
) -> list[CalendarEvent]:
    """List events across calendars, de-duplicated by id, in start order."""
    seen: dict[str, CalendarEvent] = {}
    for calendar_id in calendar_ids:
        try:
            events = await adapter.list_events(calendar_id, start, end)
        except AdapterError as e:
            logger.error("adapter_error", operation="list_events", calendar_id=calendar_id, **e.to_dict())
            errors.append({"calendar_id": calendar_id, **e.to_dict()})
            continue
        for event in events:
            seen.setdefault(event.event_id, event)
    return sorted(seen.values(), key=lambda e: (e.start_time, e.end_time, e.event_id))


async def run_buffer_pass(
    adapter: CalendarAdapter,
    config: BufferGuardConfig,
    now: datetime | None = None,
    extended: bool = False,
    horizon: timedelta | None = None,
) -> BufferPassReport:
    """
    Place buffers around every qualifying event in [now, now + horizon].

    Args:
        adapter: Calendar store
        config: Loaded configuration
        now: Start of the window (default: current UTC time)
        extended: Use the extended lookahead instead of the normal one
        horizon: Explicit horizon, overriding both lookaheads

    Returns:
        BufferPassReport with one PlacementReport per scanned event
    """
    start, end = _window(config, now, extended, horizon)
    identity = await resolve_identity(adapter)
    report = BufferPassReport(window_start=start, window_end=end, identity=identity)

    with run_context(pass_name="buffer", calendar_id=config.calendars.write, adapter=adapter.adapter_name):
        events = await collect_events(adapter, config.calendars.read, start, end, report.errors)
        report.events_scanned = len(events)
        logger.info("buffer_pass_started", events=len(events), start=start.isoformat(), end=end.isoformat())

        for event in events:
            with run_context(event_id=event.event_id):
                report.reports.append(
                    await place_buffers(
                        event,
                        config.policy,
                        adapter,
                        identity,
                        calendar_id=config.calendars.write,
                        neighbor_calendar_ids=config.calendars.all_ids,
                    )
                )

        logger.info("buffer_pass_finished", **report.outcome_counts())
    return report


async def run_cleanup_pass(
    adapter: CalendarAdapter,
    config: BufferGuardConfig,
    now: datetime | None = None,
    extended: bool = False,
    horizon: timedelta | None = None,
) -> CleanupReport:
    """Delete buffers in the horizon that no longer border a qualifying event."""
    start, end = _window(config, now, extended, horizon)
    identity = await resolve_identity(adapter)
    report = CleanupReport(window_start=start, window_end=end)

    with run_context(pass_name="cleanup", calendar_id=config.calendars.write, adapter=adapter.adapter_name):
        events = await collect_events(adapter, [config.calendars.write], start, end, report.errors)
        buffers = [e for e in events if is_buffer(e, config.policy)]
        report.examined = len(buffers)

        orphans = await reconcile(buffers, adapter, config.policy, identity, config.calendars.all_ids)
        for orphan in orphans:
            try:
                await adapter.delete_event(orphan.event_id, orphan.calendar_id)
            except AdapterError as e:
                logger.error("adapter_error", operation="delete_event", event_id=orphan.event_id, **e.to_dict())
                report.failed.append({"event_id": orphan.event_id, **e.to_dict()})
                continue
            logger.info("orphan_deleted", event_id=orphan.event_id, title=orphan.title)
            report.deleted.append(orphan.event_id)

        logger.info("cleanup_pass_finished", examined=report.examined, deleted=len(report.deleted))
    return report


async def classify_only(
    adapter: CalendarAdapter,
    config: BufferGuardConfig,
    event: CalendarEvent,
) -> Decision:
    """Classification with full reasoning, for diagnostics."""
    identity = await resolve_identity(adapter)
    return classify(event, config.policy, identity, adapter.conference_entry_points)

"""
Tool: Buffer Planner
Purpose: Compute pre/post buffer windows and their titles

    pre  = [event.start - pre_buffer, event.start)
    post = [event.end, event.end + post_buffer)

Titles always carry the policy's marker token followed by a kind phrase,
e.g. "[Buffer] Pre-buffer (ACME)". The marker is how buffers are found
again later and the phrase is how their kind is recovered, so both must
stay stable. Zero-length durations still produce a spec; placement
rejects them as invalid intervals.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from bufferguard.calendar.models import CalendarEvent, Interval
from bufferguard.engine.classifier import match_customer_code
from bufferguard.policies.config_models import BufferPolicy

LABEL_MAX_LENGTH = 30
ELLIPSIS = "…"


class BufferKind(str, Enum):
    PRE = "pre"
    POST = "post"

    @property
    def phrase(self) -> str:
        return "Pre-buffer" if self is BufferKind.PRE else "Post-buffer"


DESCRIPTION_TEMPLATES = {
    BufferKind.PRE: 'Preparation time before "{title}". Created automatically by bufferguard.',
    BufferKind.POST: 'Wrap-up time after "{title}". Created automatically by bufferguard.',
}


@dataclass(frozen=True)
class BufferSpec:
    kind: BufferKind
    interval: Interval
    title: str
    description: str
    source_event_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            **self.interval.to_dict(),
            "source_event_id": self.source_event_id,
        }


@dataclass(frozen=True)
class BufferPlan:
    pre: BufferSpec
    post: BufferSpec

    def __iter__(self):
        return iter((self.pre, self.post))


def make_label(event: CalendarEvent, policy: BufferPolicy) -> str:
    """Customer code when present, else the title truncated with an ellipsis."""
    code = match_customer_code(event.title, policy)
    if code:
        return code
    title = (event.title or "").strip()
    if len(title) <= LABEL_MAX_LENGTH:
        return title
    return title[: LABEL_MAX_LENGTH - len(ELLIPSIS)].rstrip() + ELLIPSIS


def buffer_title(kind: BufferKind, label: str, policy: BufferPolicy) -> str:
    return f"{policy.buffer_marker} {kind.phrase} ({label})"


def kind_from_title(title: str, policy: BufferPolicy) -> BufferKind | None:
    """
    Recover the buffer kind from a generated title.

    Only the phrase directly after the marker counts; the label may itself
    contain "Pre-buffer" or "Post-buffer".
    """
    title = (title or "").lstrip()
    for kind in BufferKind:
        if title.startswith(f"{policy.buffer_marker} {kind.phrase} ("):
            return kind
    return None


def plan_buffers(event: CalendarEvent, policy: BufferPolicy) -> BufferPlan:
    label = make_label(event, policy)

    def spec(kind: BufferKind, interval: Interval) -> BufferSpec:
        return BufferSpec(
            kind=kind,
            interval=interval,
            title=buffer_title(kind, label, policy),
            description=DESCRIPTION_TEMPLATES[kind].format(title=event.title),
            source_event_id=event.event_id,
        )

    return BufferPlan(
        pre=spec(BufferKind.PRE, Interval(event.start_time - policy.pre_buffer, event.start_time)),
        post=spec(BufferKind.POST, Interval(event.end_time, event.end_time + policy.post_buffer)),
    )

"""
Tool: Conferencing Detector
Purpose: Recognize video-conferencing links in event text

Signatures are tried in declared order and the first match names the
provider. Event sources are checked in a fixed order: native meeting link,
location, description, then structured conference entry points. The first
source that matches wins and later ones are not consulted.

Usage:
    from bufferguard.engine.conferencing import detect, detect_on_event

    match = detect("Join at https://zoom.us/j/123", policy.signature_matchers)
    match = detect_on_event(event, policy.signature_matchers)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from bufferguard.calendar.models import CalendarEvent

NATIVE_PROVIDER = "native"

Signatures = Sequence[tuple[re.Pattern[str], str]]
ConferenceLookup = Callable[[CalendarEvent], Iterable[str]]


@dataclass(frozen=True)
class ConferenceMatch:
    matched: bool
    provider: str | None = None
    source: str | None = None  # meeting_link, location, description, conference_data

    @classmethod
    def none(cls) -> "ConferenceMatch":
        return cls(matched=False)


def detect(text: str | None, signatures: Signatures) -> ConferenceMatch:
    """Return the first signature found anywhere in text (case-insensitive)."""
    if not text:
        return ConferenceMatch.none()
    for pattern, provider in signatures:
        if pattern.search(text):
            return ConferenceMatch(matched=True, provider=provider)
    return ConferenceMatch.none()


def detect_on_event(
    event: CalendarEvent,
    signatures: Signatures,
    conference_lookup: ConferenceLookup | None = None,
) -> ConferenceMatch:
    if event.meeting_link:
        return ConferenceMatch(matched=True, provider=NATIVE_PROVIDER, source="meeting_link")

    for source, text in (("location", event.location), ("description", event.description)):
        match = detect(text, signatures)
        if match.matched:
            return ConferenceMatch(matched=True, provider=match.provider, source=source)

    if conference_lookup is not None:
        for entry_point in conference_lookup(event):
            match = detect(entry_point, signatures)
            if match.matched:
                return ConferenceMatch(matched=True, provider=match.provider, source="conference_data")

    return ConferenceMatch.none()

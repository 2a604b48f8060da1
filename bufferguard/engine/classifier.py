"""
Tool: Event Classifier
Purpose: Decide whether a calendar event warrants buffers

classify() walks a fixed sequence of checks and stops at the first one
that decides the outcome:

    1. too-short            duration below min_meeting_minutes
    2. all-day              all-day events never get buffers
    3. is-buffer            title carries the buffer marker
    4. excluded-title       title matches an excluded pattern (first reported)
    5. excluded-calendar    source calendar matches an excluded pattern
    6. too-many-guests      guest count (including self) above the ceiling
    7. not-accepted         own status is not owner/accepted/tentative
    8. customer-engagement  title carries a customer code -> accept
    9. conferencing:<name>  conferencing link detected -> accept, else no-match

Structural rejects come first, attendance before positive matches, so an
unaccepted video call is never buffered. Checks 5-7 are exposed as
shared_exclusion() so the conflict filter applies them identically.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from bufferguard.calendar.models import CalendarEvent, ResponseStatus
from bufferguard.engine.conferencing import ConferenceLookup, detect_on_event
from bufferguard.policies.config_models import BufferPolicy


class ReasonCode(str, Enum):
    """Closed set of classification outcomes."""

    TOO_SHORT = "too-short"
    ALL_DAY = "all-day"
    IS_BUFFER = "is-buffer"
    EXCLUDED_TITLE = "excluded-title"
    EXCLUDED_CALENDAR = "excluded-calendar"
    TOO_MANY_GUESTS = "too-many-guests"
    NOT_ACCEPTED = "not-accepted"
    CUSTOMER_ENGAGEMENT = "customer-engagement"
    CONFERENCING = "conferencing"
    NO_MATCH = "no-match"


class AttendanceStatus(str, Enum):
    """
    Caller's relationship to an event.

    UNKNOWN covers every case where identity or response cannot be
    resolved. It fails the acceptance check.
    """

    OWNER = "owner"
    ACCEPTED = "accepted"
    TENTATIVE = "tentative"
    DECLINED = "declined"
    NO_RESPONSE = "no-response"
    UNKNOWN = "unknown"


ATTENDING_STATUSES = frozenset({
    AttendanceStatus.OWNER,
    AttendanceStatus.ACCEPTED,
    AttendanceStatus.TENTATIVE,
})

_RESPONSE_TO_ATTENDANCE = {
    ResponseStatus.ACCEPTED: AttendanceStatus.ACCEPTED,
    ResponseStatus.TENTATIVE: AttendanceStatus.TENTATIVE,
    ResponseStatus.DECLINED: AttendanceStatus.DECLINED,
    ResponseStatus.NEEDS_ACTION: AttendanceStatus.NO_RESPONSE,
}


@dataclass(frozen=True)
class Decision:
    should_create_buffers: bool
    reason: ReasonCode
    matched_provider: str | None = None
    customer_code: str | None = None
    matched_pattern: str | None = None
    attendance: AttendanceStatus | None = None
    guest_count: int | None = None

    @property
    def reason_label(self) -> str:
        """Reason code as displayed, e.g. 'conferencing:zoom'."""
        if self.reason is ReasonCode.CONFERENCING and self.matched_provider:
            return f"{self.reason.value}:{self.matched_provider}"
        return self.reason.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "should_create_buffers": self.should_create_buffers,
            "reason": self.reason_label,
            "matched_provider": self.matched_provider,
            "customer_code": self.customer_code,
            "matched_pattern": self.matched_pattern,
            "attendance": self.attendance.value if self.attendance else None,
            "guest_count": self.guest_count,
        }


def _reject(reason: ReasonCode, **details: Any) -> Decision:
    return Decision(should_create_buffers=False, reason=reason, **details)


def _same_identity(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def resolve_attendance(event: CalendarEvent, identity: str | None) -> AttendanceStatus:
    """
    Derive the caller's status on an event.

    Organizer -> OWNER. Listed guest -> their mapped response. Not listed at
    all -> OWNER (visible on our calendar without an invite, so ours).
    """
    if not identity or not identity.strip():
        return AttendanceStatus.UNKNOWN

    if event.organizer is not None and _same_identity(event.organizer.email, identity):
        return AttendanceStatus.OWNER

    for attendee in event.attendees:
        if _same_identity(attendee.email, identity):
            response = ResponseStatus.parse(attendee.status)
            if response is None:
                return AttendanceStatus.UNKNOWN
            return _RESPONSE_TO_ATTENDANCE[response]

    return AttendanceStatus.OWNER


def count_guests(event: CalendarEvent, identity: str | None) -> int:
    """Guest count including self, whether or not self is on the list."""
    listed_self = any(
        attendee.is_self or _same_identity(attendee.email, identity)
        for attendee in event.attendees
    )
    return len(event.attendees) + (0 if listed_self else 1)


def is_buffer(event: CalendarEvent, policy: BufferPolicy) -> bool:
    return policy.buffer_marker in (event.title or "")


def match_customer_code(title: str, policy: BufferPolicy) -> str | None:
    matcher = policy.customer_code_matcher
    if matcher is None or not title:
        return None
    match = matcher.search(title)
    if not match:
        return None
    return match.group(1) or None


def shared_exclusion(
    event: CalendarEvent,
    policy: BufferPolicy,
    identity: str | None,
) -> Decision | None:
    """
    Calendar, guest-ceiling and attendance checks.

    Returns the rejecting Decision, or None when the event passes all
    three. Used by both classify() and the conflict filter.
    """
    for matcher in policy.calendar_matchers:
        if matcher.search(event.calendar_id or ""):
            return _reject(ReasonCode.EXCLUDED_CALENDAR, matched_pattern=matcher.pattern)

    guest_count = count_guests(event, identity)
    if policy.guest_ceiling is not None and guest_count > policy.guest_ceiling:
        return _reject(ReasonCode.TOO_MANY_GUESTS, guest_count=guest_count)

    if policy.require_acceptance:
        attendance = resolve_attendance(event, identity)
        if attendance not in ATTENDING_STATUSES:
            return _reject(ReasonCode.NOT_ACCEPTED, attendance=attendance, guest_count=guest_count)

    return None


def classify(
    event: CalendarEvent,
    policy: BufferPolicy,
    identity: str | None,
    conference_lookup: ConferenceLookup | None = None,
) -> Decision:
    """
    Classify an event.

    Args:
        event: Event to classify
        policy: Active buffer policy
        identity: Caller's email, or None when it could not be resolved
        conference_lookup: Optional structured conference-data lookup

    Returns:
        Decision with a ReasonCode from the closed enumeration
    """
    if event.duration < policy.min_meeting_duration:
        return _reject(ReasonCode.TOO_SHORT)

    if event.all_day:
        return _reject(ReasonCode.ALL_DAY)

    if is_buffer(event, policy):
        return _reject(ReasonCode.IS_BUFFER)

    title = event.title or ""
    for matcher in policy.title_matchers:
        if matcher.search(title):
            return _reject(ReasonCode.EXCLUDED_TITLE, matched_pattern=matcher.pattern)

    excluded = shared_exclusion(event, policy, identity)
    if excluded is not None:
        return excluded

    attendance = resolve_attendance(event, identity)
    guest_count = count_guests(event, identity)

    customer_code = match_customer_code(title, policy)
    if customer_code:
        return Decision(
            should_create_buffers=True,
            reason=ReasonCode.CUSTOMER_ENGAGEMENT,
            customer_code=customer_code,
            attendance=attendance,
            guest_count=guest_count,
        )

    conference = detect_on_event(event, policy.signature_matchers, conference_lookup)
    if conference.matched:
        return Decision(
            should_create_buffers=True,
            reason=ReasonCode.CONFERENCING,
            matched_provider=conference.provider,
            attendance=attendance,
            guest_count=guest_count,
        )

    return _reject(ReasonCode.NO_MATCH, attendance=attendance, guest_count=guest_count)

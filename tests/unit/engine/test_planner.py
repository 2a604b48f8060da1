"""Tests for bufferguard/engine/planner.py"""

from datetime import timedelta

from bufferguard.engine.planner import (
    ELLIPSIS,
    LABEL_MAX_LENGTH,
    BufferKind,
    kind_from_title,
    make_label,
    plan_buffers,
)
from bufferguard.policies.config_models import BufferPolicy


class TestIntervals:
    def test_pre_and_post_windows(self, make_event, policy):
        event = make_event(title="[ACME] Quarterly Review", minutes=60)
        plan = plan_buffers(event, policy)

        assert plan.pre.interval.start == event.start_time - timedelta(minutes=15)
        assert plan.pre.interval.end == event.start_time
        assert plan.post.interval.start == event.end_time
        assert plan.post.interval.end == event.end_time + timedelta(minutes=15)

    def test_asymmetric_durations(self, make_event):
        policy = BufferPolicy(pre_buffer_minutes=5, post_buffer_minutes=25)
        event = make_event()
        plan = plan_buffers(event, policy)

        assert plan.pre.interval.duration == timedelta(minutes=5)
        assert plan.post.interval.duration == timedelta(minutes=25)

    def test_zero_duration_still_planned(self, make_event):
        policy = BufferPolicy(pre_buffer_minutes=0)
        plan = plan_buffers(make_event(), policy)

        assert plan.pre.interval.is_valid is False
        assert plan.post.interval.is_valid is True

    def test_iterates_pre_then_post(self, make_event, policy):
        kinds = [spec.kind for spec in plan_buffers(make_event(), policy)]
        assert kinds == [BufferKind.PRE, BufferKind.POST]


class TestTitles:
    def test_customer_code_label(self, make_event, policy):
        plan = plan_buffers(make_event(title="[ACME] Quarterly Review"), policy)
        assert plan.pre.title == "[Buffer] Pre-buffer (ACME)"
        assert plan.post.title == "[Buffer] Post-buffer (ACME)"

    def test_plain_title_label(self, make_event, policy):
        plan = plan_buffers(make_event(title="Design Review"), policy)
        assert plan.pre.title == "[Buffer] Pre-buffer (Design Review)"

    def test_long_title_truncated_with_ellipsis(self, make_event, policy):
        title = "Cross-functional roadmap alignment for the second half"
        label = make_label(make_event(title=title), policy)

        assert len(label) <= LABEL_MAX_LENGTH
        assert label.endswith(ELLIPSIS)
        assert title.startswith(label[: -len(ELLIPSIS)])

    def test_title_at_limit_not_truncated(self, make_event, policy):
        title = "x" * LABEL_MAX_LENGTH
        assert make_label(make_event(title=title), policy) == title

    def test_titles_always_carry_marker(self, make_event):
        policy = BufferPolicy(buffer_marker="⏳")
        for spec in plan_buffers(make_event(), policy):
            assert spec.title.startswith("⏳ ")

    def test_description_references_original_title(self, make_event, policy):
        plan = plan_buffers(make_event(title="Design Review"), policy)
        assert '"Design Review"' in plan.pre.description
        assert '"Design Review"' in plan.post.description

    def test_source_event_recorded(self, make_event, policy):
        event = make_event()
        assert {s.source_event_id for s in plan_buffers(event, policy)} == {event.event_id}


class TestKindFromTitle:
    def test_recovers_kind(self, policy):
        assert kind_from_title("[Buffer] Pre-buffer (ACME)", policy) is BufferKind.PRE
        assert kind_from_title("[Buffer] Post-buffer (ACME)", policy) is BufferKind.POST

    def test_label_containing_other_phrase(self, policy):
        assert kind_from_title("[Buffer] Post-buffer (Pre-buffer review)", policy) is BufferKind.POST
        assert kind_from_title("[Buffer] Pre-buffer (Post-buffer sync)", policy) is BufferKind.PRE

    def test_round_trips_planned_titles(self, make_event, policy):
        plan = plan_buffers(make_event(title="Pre-buffer review"), policy)
        assert kind_from_title(plan.pre.title, policy) is BufferKind.PRE
        assert kind_from_title(plan.post.title, policy) is BufferKind.POST

    def test_custom_marker(self):
        policy = BufferPolicy(buffer_marker="⏳")
        assert kind_from_title("⏳ Post-buffer (ACME)", policy) is BufferKind.POST
        assert kind_from_title("[Buffer] Post-buffer (ACME)", policy) is None

    def test_unknown_phrase(self, policy):
        assert kind_from_title("[Buffer] something else", policy) is None
        assert kind_from_title("[Buffer] travel before Pre-buffer (x)", policy) is None

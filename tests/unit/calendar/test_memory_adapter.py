"""Tests for bufferguard/calendar/providers/memory.py"""

import pytest

from bufferguard.calendar.models import Interval
from bufferguard.calendar.providers.base import AdapterError
from bufferguard.calendar.providers.memory import DryRunAdapter, InMemoryCalendarAdapter
from bufferguard.policies.config_models import VisualStyle
from tests.conftest import ME, at


class TestInMemoryCalendarAdapter:
    @pytest.mark.asyncio
    async def test_identity(self, store):
        assert await store.current_identity() == ME

    @pytest.mark.asyncio
    async def test_missing_identity_raises(self):
        with pytest.raises(AdapterError):
            await InMemoryCalendarAdapter().current_identity()

    @pytest.mark.asyncio
    async def test_range_query_is_inclusive(self, make_event, store):
        before = store.add(make_event(start=at(8), minutes=60))
        inside = store.add(make_event(start=at(9, 30), minutes=15))
        after = store.add(make_event(start=at(10), minutes=60))
        store.add(make_event(start=at(12), minutes=60))

        events = await store.list_events("primary", at(9), at(10))

        assert events == [before, inside, after]

    @pytest.mark.asyncio
    async def test_calendars_are_separate(self, make_event, store):
        store.add(make_event(calendar_id="work"))
        assert await store.list_events("primary", at(0), at(23)) == []
        assert len(await store.list_events("work", at(0), at(23))) == 1

    @pytest.mark.asyncio
    async def test_create_get_delete(self, store):
        created = await store.create_event("primary", "[Buffer] Pre-buffer (X)", "prep", Interval(at(9), at(10)))

        assert await store.get_event("primary", created.event_id) == created
        await store.delete_event(created.event_id)
        with pytest.raises(AdapterError):
            await store.get_event("primary", created.event_id)

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete_event("nope")

    @pytest.mark.asyncio
    async def test_style_requires_existing_event(self, store):
        with pytest.raises(AdapterError):
            await store.set_visual_style("nope", VisualStyle())

    def test_no_conference_entry_points(self, make_event, store):
        assert store.conference_entry_points(make_event()) == []


class TestDryRunAdapter:
    @pytest.mark.asyncio
    async def test_creates_go_to_overlay(self, make_event, store):
        meeting = store.add(make_event())
        preview = DryRunAdapter(store)

        created = await preview.create_event("primary", "[Buffer] Post-buffer (X)", "", Interval(at(11), at(11, 15)))
        await preview.set_visual_style(created.event_id, VisualStyle())

        assert store.all_events() == [meeting]
        assert store.styles == {}
        assert preview.planned_creates == [created]
        assert created in await preview.list_events("primary", at(10), at(12))
        assert await preview.get_event("primary", created.event_id) == created

    @pytest.mark.asyncio
    async def test_deletes_hidden_from_reads(self, make_event, store):
        meeting = store.add(make_event())
        preview = DryRunAdapter(store)

        await preview.delete_event(meeting.event_id)

        assert preview.deleted == [(meeting.event_id, "primary")]
        assert await preview.list_events("primary", at(9), at(12)) == []
        assert store.all_events() == [meeting]

    @pytest.mark.asyncio
    async def test_reads_pass_through(self, store):
        preview = DryRunAdapter(store)
        assert await preview.current_identity() == ME
        assert preview.adapter_name == "dry-run:memory"

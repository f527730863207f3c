"""Background view tracking."""

import logging

import pytest
from sqlalchemy import func, select

from heimursaga.models.engagement import EntryView
from heimursaga.models.entry import Entry
from heimursaga.schemas.session import ANONYMOUS
from heimursaga.services.views import ViewTracker


async def _views(session_factory, entry_id: int):
    async with session_factory() as session:
        count = (await session.execute(select(Entry.views_count).where(Entry.id == entry_id))).scalar_one()
        rows = (
            await session.execute(
                select(func.count()).select_from(EntryView).where(EntryView.entry_id == entry_id)
            )
        ).scalar()
    return count, rows


class TestQualifies:
    def test_author_is_not_counted(self):
        entry = Entry(author_id=1, public=True, is_draft=False)
        assert ViewTracker.qualifies(entry, 1) is False

    def test_other_reader_and_anonymous_are_counted(self):
        entry = Entry(author_id=1, public=True, is_draft=False)
        assert ViewTracker.qualifies(entry, 2) is True
        assert ViewTracker.qualifies(entry, None) is True

    @pytest.mark.parametrize("fields", [{"public": False, "is_draft": False}, {"public": True, "is_draft": True}])
    def test_unpublished_entries_are_not_counted(self, fields):
        assert ViewTracker.qualifies(Entry(author_id=1, **fields), 2) is False


@pytest.mark.asyncio
class TestRecordView:
    async def test_repeat_viewer_counts_twice_but_keeps_one_row(self, views, session_factory, explorers, make_entry):
        entry = await make_entry(explorers["ada"])

        await views.record_view(entry.public_id, explorers["ben"], "10.0.0.1")
        await views.record_view(entry.public_id, explorers["ben"], "10.0.0.1")

        assert await _views(session_factory, entry.id) == (2, 1)

    async def test_anonymous_viewers_dedup_by_ip(self, views, session_factory, explorers, make_entry):
        entry = await make_entry(explorers["ada"])

        await views.record_view(entry.public_id, None, "10.0.0.1")
        await views.record_view(entry.public_id, None, "10.0.0.2")
        await views.record_view(entry.public_id, None, "10.0.0.2")

        assert await _views(session_factory, entry.id) == (3, 2)

    async def test_viewer_without_identity_only_bumps_counter(self, views, session_factory, explorers, make_entry):
        entry = await make_entry(explorers["ada"])

        await views.record_view(entry.public_id)

        assert await _views(session_factory, entry.id) == (1, 0)

    async def test_unknown_entry_is_ignored(self, views, session_factory, explorers):
        await views.record_view("missing", explorers["ben"], "10.0.0.1")

        async with session_factory() as session:
            assert (await session.execute(select(func.count()).select_from(EntryView))).scalar() == 0

    async def test_storage_failure_is_logged_not_raised(self, caplog):
        def broken_factory():
            raise RuntimeError("database unavailable")

        tracker = ViewTracker(broken_factory)
        with caplog.at_level(logging.ERROR, logger="heimursaga.services.views"):
            await tracker.record_view("abc123", 1, "10.0.0.1")

        assert "Failed to track view of entry abc123" in caplog.text


@pytest.mark.asyncio
class TestDetailReadsScheduleViews:
    async def test_reader_view_is_tracked_after_response(self, service, views, session_factory, explorers, as_explorer, make_entry):
        entry = await make_entry(explorers["ada"])

        detail = await service.get_entry_by_id(entry.public_id, as_explorer("ben", ip="192.0.2.7"))
        await views.drain()

        assert detail.views_count == 0
        assert await _views(session_factory, entry.id) == (1, 1)

    async def test_author_view_is_not_tracked(self, service, views, session_factory, explorers, as_explorer, make_entry):
        entry = await make_entry(explorers["ada"])

        await service.get_entry_by_id(entry.public_id, as_explorer("ada"))
        await views.drain()

        assert await _views(session_factory, entry.id) == (0, 0)

    async def test_anonymous_view_without_ip_bumps_counter_only(self, service, views, session_factory, explorers, make_entry):
        entry = await make_entry(explorers["ada"])

        await service.get_entry_by_id(entry.public_id, ANONYMOUS)
        await views.drain()

        assert await _views(session_factory, entry.id) == (1, 0)

    async def test_view_does_not_touch_updated_at(self, views, session_factory, explorers, make_entry):
        entry = await make_entry(explorers["ada"])

        await views.record_view(entry.public_id, explorers["ben"], "10.0.0.1")

        async with session_factory() as session:
            reloaded = await session.get(Entry, entry.id)
        assert reloaded.updated_at == entry.updated_at

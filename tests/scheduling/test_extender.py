"""
Tests for the schedule extender over the SQL timeline store.
"""

import asyncio
from datetime import timedelta

import pytest

from lineartv.config import SchedulingConfig
from lineartv.scheduling.errors import (
    BatchSafetyCapExceeded,
    InvalidExtensionRequest,
    InvalidTemplate,
    NoProgramsFound,
)
from lineartv.scheduling.extender import ScheduleExtender, get_schedule_extender
from lineartv.timeline.store import SQLTimelineStore

from tests.fixtures.factories import at, make_item


@pytest.fixture
async def channel_id(add_channel, sql_store: SQLTimelineStore) -> int:
    """A channel with three programs: 10:00 A (1h), 11:00 B (1h), 12:00 C (30m)."""
    channel_id = await add_channel("Loop Channel")
    await sql_store.insert_batch(
        [
            make_item(at(10), 3600, "a.mp4", title="A", channel_id=channel_id),
            make_item(at(11), 3600, "b.mp4", title="B", channel_id=channel_id),
            make_item(at(12), 1800, "c.mp4", title="C", channel_id=channel_id),
        ]
    )
    return channel_id


@pytest.fixture
def extender(sql_store: SQLTimelineStore) -> ScheduleExtender:
    return ScheduleExtender(sql_store, SchedulingConfig())


@pytest.mark.integration
class TestBlockMode:
    """Tests for extend_blocks."""

    async def test_two_blocks(self, extender, sql_store, channel_id):
        result = await extender.extend_blocks(channel_id, 2)

        assert result.inserted_count == 6
        assert result.block_count == 2
        assert result.template_duration == timedelta(hours=2, minutes=30)
        assert result.previous_end == at(12, 30)
        assert result.new_end == at(17, 30)

        items = await sql_store.list_all(channel_id)
        assert len(items) == 9
        new = items[3:]
        assert [i.start_time for i in new] == [
            at(12, 30), at(13, 30), at(14, 30),
            at(15), at(16), at(17),
        ]
        assert [i.title for i in new] == ["A", "B", "C", "A", "B", "C"]
        assert [i.asset_ref for i in new[:3]] == ["a.mp4", "b.mp4", "c.mp4"]
        assert all(i.id is not None for i in result.inserted)

    @pytest.mark.parametrize("blocks", [0, -1, 1.5, True, "2"])
    async def test_invalid_block_count(self, extender, channel_id, blocks):
        with pytest.raises(InvalidExtensionRequest):
            await extender.extend_blocks(channel_id, blocks)

    async def test_cap_exceeded_writes_nothing(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=5))

        with pytest.raises(BatchSafetyCapExceeded) as exc_info:
            await extender.extend_blocks(channel_id, 2)

        assert exc_info.value.estimated == 6
        assert exc_info.value.cap == 5
        assert len(await sql_store.list_all(channel_id)) == 3

    async def test_cap_is_inclusive(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=6))

        result = await extender.extend_blocks(channel_id, 2)

        assert result.inserted_count == 6

    async def test_no_programs(self, extender, add_channel):
        empty = await add_channel("Empty")

        with pytest.raises(NoProgramsFound):
            await extender.extend_blocks(empty, 1)

    async def test_invalid_template(self, extender, sql_store, add_channel):
        channel_id = await add_channel("Broken")
        await sql_store.insert_batch(
            [
                make_item(at(10), 0, "a.mp4", channel_id=channel_id),
                make_item(at(11), None, "b.mp4", channel_id=channel_id),
            ]
        )

        with pytest.raises(InvalidTemplate):
            await extender.extend_blocks(channel_id, 1)

        assert len(await sql_store.list_all(channel_id)) == 2

    async def test_non_playable_rows_not_copied(self, extender, sql_store, channel_id):
        await sql_store.insert_batch([make_item(at(12, 45), None, "note", channel_id=channel_id)])

        result = await extender.extend_blocks(channel_id, 1)

        assert result.inserted_count == 3
        assert "note" not in [i.asset_ref for i in result.inserted]


@pytest.mark.integration
class TestDayMode:
    """Tests for extend_days."""

    async def test_one_day(self, extender, sql_store, channel_id):
        result = await extender.extend_days(channel_id, 1)

        # ceil(24h / 2.5h) = 10 blocks
        assert result.block_count == 10
        assert result.inserted_count == 30
        assert result.new_end >= result.previous_end + timedelta(days=1)
        assert len(await sql_store.list_all(channel_id)) == 33

    async def test_day_mode_respects_cap(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=20))

        with pytest.raises(BatchSafetyCapExceeded):
            await extender.extend_days(channel_id, 1)

        assert len(await sql_store.list_all(channel_id)) == 3

    @pytest.mark.parametrize("days", [0, -2, float("inf"), None])
    async def test_invalid_days(self, extender, channel_id, days):
        with pytest.raises(InvalidExtensionRequest):
            await extender.extend_days(channel_id, days)

    async def test_days_beyond_timedelta_range(self, extender, sql_store, channel_id):
        with pytest.raises(InvalidExtensionRequest):
            await extender.extend_days(channel_id, 1e9)

        assert len(await sql_store.list_all(channel_id)) == 3

    async def test_end_past_last_date_is_refused(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=10**9))

        with pytest.raises(InvalidExtensionRequest):
            await extender.extend_days(channel_id, 3_000_000)

        assert len(await sql_store.list_all(channel_id)) == 3

    async def test_huge_block_count_is_refused_before_cap(self, extender, sql_store, channel_id):
        with pytest.raises(InvalidExtensionRequest):
            await extender.extend_blocks(channel_id, 10**12)

        assert len(await sql_store.list_all(channel_id)) == 3


@pytest.mark.integration
class TestPreview:
    """Tests for preview."""

    async def test_template_summary(self, extender, sql_store, channel_id):
        preview = await extender.preview(channel_id)

        assert preview.item_count == 3
        assert preview.template_item_count == 3
        assert preview.template_start == at(10)
        assert preview.template_end == at(12, 30)
        assert preview.current_end == at(12, 30)
        assert preview.block_count is None
        assert preview.exceeds_cap is False

    async def test_block_projection_writes_nothing(self, extender, sql_store, channel_id):
        preview = await extender.preview(channel_id, blocks=4)

        assert preview.estimated_inserts == 12
        assert preview.projected_end == at(22, 30)
        assert preview.hours_added == 10
        assert len(await sql_store.list_all(channel_id)) == 3

    async def test_over_cap_is_reported(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=10))

        preview = await extender.preview(channel_id, days=2)

        assert preview.exceeds_cap is True
        assert preview.to_dict()["exceeds_cap"] is True

    async def test_blocks_and_days_rejected(self, extender, channel_id):
        with pytest.raises(InvalidExtensionRequest):
            await extender.preview(channel_id, blocks=1, days=1)

    async def test_end_past_last_date_has_no_projection(self, extender, sql_store, channel_id):
        preview = await extender.preview(channel_id, days=3_000_000)

        assert preview.block_count is not None
        assert preview.projected_end is None
        assert preview.hours_added is None
        assert preview.exceeds_cap is True
        assert preview.to_dict()["projected_end"] is None
        assert len(await sql_store.list_all(channel_id)) == 3


@pytest.mark.integration
class TestRollForward:
    """Tests for roll_forward."""

    async def test_copies_window(self, extender, sql_store, channel_id):
        result = await extender.roll_forward(channel_id, at(10), at(11), add_days=7)

        assert len(result.inserted) == 2
        assert [i.start_time for i in result.inserted] == [at(10, day=7), at(11, day=7)]
        assert len(await sql_store.list_all(channel_id)) == 5

    async def test_empty_window(self, extender, sql_store, channel_id):
        result = await extender.roll_forward(channel_id, at(20), at(21), add_days=1)

        assert result.inserted == []
        assert len(await sql_store.list_all(channel_id)) == 3

    async def test_cap(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=2))

        with pytest.raises(BatchSafetyCapExceeded):
            await extender.roll_forward(channel_id, at(0), at(23), add_days=1)

    async def test_reversed_window(self, extender, channel_id):
        with pytest.raises(InvalidExtensionRequest):
            await extender.roll_forward(channel_id, at(12), at(10), add_days=1)

    async def test_zero_days(self, extender, channel_id):
        with pytest.raises(InvalidExtensionRequest):
            await extender.roll_forward(channel_id, at(10), at(12), add_days=0)

    @pytest.mark.parametrize("add_days", [5_000_000, -5_000_000, 1e10])
    async def test_shift_out_of_range(self, extender, sql_store, channel_id, add_days):
        with pytest.raises(InvalidExtensionRequest):
            await extender.roll_forward(channel_id, at(10), at(11), add_days=add_days)

        assert len(await sql_store.list_all(channel_id)) == 3


@pytest.mark.integration
class TestConcurrency:
    """Tests for the per-channel lease."""

    async def test_concurrent_extensions_serialize(self, extender, sql_store, channel_id):
        first, second = await asyncio.gather(
            extender.extend_blocks(channel_id, 1),
            extender.extend_blocks(channel_id, 1),
        )

        # The second extension sees the first one's programs in its template
        assert first.inserted_count == 3
        assert second.inserted_count == 6
        assert second.previous_end == first.new_end
        assert len(await sql_store.list_all(channel_id)) == 12

    async def test_lease_released_after_error(self, sql_store, channel_id):
        extender = ScheduleExtender(sql_store, SchedulingConfig(max_inserts=1))

        with pytest.raises(BatchSafetyCapExceeded):
            await extender.extend_blocks(channel_id, 1)

        assert extender.is_extending(channel_id) is False

    async def test_global_extender_is_shared(self, monkeypatch, sql_store):
        monkeypatch.setattr("lineartv.scheduling.extender.get_timeline_store", lambda: sql_store)

        extender = get_schedule_extender()

        assert extender is get_schedule_extender()
        assert extender.store is sql_store

"""
Integration tests for the channel and clock endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from lineartv.timeline.items import utc_now

from tests.fixtures.factories import PUBLIC_ROOT, at, make_item


@pytest.fixture
async def channel_id(add_channel, sql_store) -> int:
    channel_id = await add_channel("Movies")
    await sql_store.insert_batch(
        [
            make_item(at(10), 3600, "a.mp4", title="A", channel_id=channel_id),
            make_item(at(11), 3600, "b.mp4", title="B", channel_id=channel_id),
            make_item(at(12), None, "notes", title="Notes", channel_id=channel_id),
        ]
    )
    return channel_id


@pytest.mark.integration
class TestClockAPI:
    """Tests for /api/now and /api/health."""

    async def test_now(self, async_client: AsyncClient):
        before = utc_now()
        response = await async_client.get("/api/now")

        assert response.status_code == 200
        data = response.json()
        served = datetime.fromtimestamp(data["epoch_ms"] / 1000, tz=timezone.utc)
        assert abs((served - before).total_seconds()) < 5
        assert datetime.fromisoformat(data["iso"]).tzinfo is not None

    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


@pytest.mark.integration
class TestNowPlayingAPI:
    """Tests for /api/channels/{id}/now-playing."""

    async def test_unknown_channel(self, async_client: AsyncClient):
        response = await async_client.get("/api/channels/999/now-playing")

        assert response.status_code == 404

    async def test_scheduled(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/now-playing",
            params={"at": "2025-01-06T10:30:00Z"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "playing_scheduled"
        assert data["title"] == "A"
        assert data["source_url"] == f"{PUBLIC_ROOT}/channel{channel_id}/a.mp4"
        assert data["next"]["title"] == "B"
        assert datetime.fromisoformat(data["boundary"]) == at(11)
        assert data["fallback"] is False

    async def test_standby_between_programs(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/now-playing",
            params={"at": "2025-01-06T09:00:00Z"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "playing_standby"
        assert data["source_url"] == f"{PUBLIC_ROOT}/channel{channel_id}/standby.mp4"
        assert datetime.fromisoformat(data["boundary"]) == at(10)

    async def test_live_channel(self, async_client: AsyncClient, add_channel):
        channel_id = await add_channel(
            "Live", live_override=True, live_source_ref="https://live.example.com/embed/3"
        )

        response = await async_client.get(f"/api/channels/{channel_id}/now-playing")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "live"
        assert data["source_url"] == "https://live.example.com/embed/3"
        assert data["title"] == "Live"

    async def test_invalid_instant(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/now-playing", params={"at": "yesterday-ish"}
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestProgramsAPI:
    """Tests for /api/channels/{id}/programs and /upcoming."""

    async def test_all_programs(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(f"/api/channels/{channel_id}/programs")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert [p["title"] for p in data["programs"]] == ["A", "B", "Notes"]
        assert data["programs"][2]["playable"] is False

    async def test_programs_window(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/programs",
            params={"start": "2025-01-06T11:00:00Z", "end": "2025-01-06T12:00:00Z"},
        )

        assert response.status_code == 200
        assert [p["title"] for p in response.json()["programs"]] == ["B", "Notes"]

    async def test_programs_open_window(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/programs",
            params={"start": "2025-01-06T10:30:00Z"},
        )

        assert response.json()["count"] == 2

    async def test_programs_reversed_window(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/programs",
            params={"start": "2025-01-06T12:00:00Z", "end": "2025-01-06T10:00:00Z"},
        )

        assert response.status_code == 400

    async def test_programs_unknown_channel(self, async_client: AsyncClient):
        response = await async_client.get("/api/channels/999/programs")

        assert response.status_code == 404

    async def test_upcoming(self, async_client: AsyncClient, sql_store, add_channel):
        channel_id = await add_channel("Guide")
        tomorrow = utc_now() + timedelta(days=1)
        await sql_store.insert_batch(
            [
                make_item(at(10), 60, "past.mp4", title="Past", channel_id=channel_id),
            ]
            + [
                make_item(
                    tomorrow + timedelta(minutes=n),
                    60,
                    f"{n}.mp4",
                    title=f"P{n}",
                    channel_id=channel_id,
                )
                for n in range(3)
            ]
        )

        response = await async_client.get(
            f"/api/channels/{channel_id}/upcoming", params={"limit": 2}
        )

        assert response.status_code == 200
        assert [p["title"] for p in response.json()["programs"]] == ["P0", "P1"]

    async def test_upcoming_limit_bounds(self, async_client: AsyncClient, channel_id):
        response = await async_client.get(
            f"/api/channels/{channel_id}/upcoming", params={"limit": 0}
        )

        assert response.status_code == 400

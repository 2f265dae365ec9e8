import httpx
from httpx import AsyncClient
from giveboard.main import app
from giveboard.upstream import get_leaderboard_client
from giveboard.services.leaderboard_client import LeaderboardClient

import pytest

WEEKLY = {
    "success": True,
    "data": {
        "leaderboard": [
            {"id": 1, "name": "Ann", "post_count": 10, "total_contributions": 40, "badges": ["b1", "b2"]},
            {"id": 2, "name": "Bo", "post_count": 5, "total_contributions": 5, "badges": []},
        ],
        "total": 2,
    },
}


@pytest.fixture
def upstream():
    calls: list[httpx.Request] = []

    def install(handler):
        def recording(request):
            calls.append(request)
            return handler(request)
        async def override():
            async with LeaderboardClient("http://upstream.test", transport=httpx.MockTransport(recording)) as client:
                yield client
        app.dependency_overrides[get_leaderboard_client] = override
        return calls

    yield install
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_weekly_leaderboard_rows(upstream):
    calls = upstream(lambda r: httpx.Response(200, json=WEEKLY))

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard", params={"period": "weekly", "category": "top-givers", "limit": 50})
    assert r.status_code == 200
    assert r.headers["x-request-id"]
    body = r.json()
    assert body["kind"] == "rows"
    assert body["heading"] == "Top Givers"
    assert body["has_more"] is False
    ann, bo = body["rows"]
    assert (ann["rank"], ann["tier_marker"], ann["primary_metric_value"], ann["primary_metric_label"], ann["badge_count"]) == (1, "crown", 10, "Giveaways", 2)
    assert (bo["rank"], bo["tier_marker"], bo["rank_label"], bo["primary_metric_value"], bo["badge_count"]) == (2, "medal", "#2", 5, 0)

    assert dict(calls[0].url.params) == {"period": "weekly", "page": "1", "limit": "50"}


@pytest.mark.asyncio
async def test_category_changes_metric_not_query(upstream):
    calls = upstream(lambda r: httpx.Response(200, json=WEEKLY))

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard", params={"period": "weekly", "category": "requestors"})
    body = r.json()
    assert [row["primary_metric_value"] for row in body["rows"]] == [40, 5]
    assert body["heading"] == "Requestors"
    assert "category" not in calls[0].url.params


@pytest.mark.asyncio
async def test_upstream_failure_is_502_with_error_view(upstream):
    upstream(lambda r: httpx.Response(200, json={"success": False, "error": "rate limited"}))

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard")
    assert r.status_code == 502
    body = r.json()
    assert body["kind"] == "error"
    assert body["error"] == "rate limited"
    assert body["message"] == "Unable to Load Leaderboard"
    assert body["loading"] is False


@pytest.mark.asyncio
async def test_empty_period(upstream):
    upstream(lambda r: httpx.Response(200, json={"success": True, "data": {"leaderboard": [], "total": 0}}))

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard", params={"period": "monthly"})
    assert r.status_code == 200
    body = r.json()
    assert body["kind"] == "empty"
    assert body["message"] == "No contributors found for this period."
    assert body["error"] is None


@pytest.mark.asyncio
async def test_invalid_category_rejected(upstream):
    calls = upstream(lambda r: httpx.Response(200, json=WEEKLY))

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard", params={"category": "most-liked"})
        r2 = await ac.get("/leaderboard", params={"period": "yearly"})
    assert r.status_code == 422
    assert r2.status_code == 422
    assert calls == []


@pytest.mark.asyncio
async def test_options():
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/leaderboard/options")
    assert r.status_code == 200
    body = r.json()
    assert [p["value"] for p in body["periods"]] == ["weekly", "monthly", "all-time"]
    assert [c["id"] for c in body["categories"]] == ["top-givers", "giveaways", "requestors", "requests", "trending"]

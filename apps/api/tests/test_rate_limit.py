from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import app
from routers.rate_limit import RATE_LIMIT_DETAIL, RateLimiter


@pytest_asyncio.fixture
async def limited_client():
    previous = app.state.rate_limiter
    app.state.rate_limiter = RateLimiter(limit=2, window_seconds=60)
    app.state.disable_rate_limits = False
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.state.rate_limiter = previous


@pytest.mark.asyncio
async def test_limiter_counts_per_key():
    limiter = RateLimiter(limit=2, window_seconds=60)

    assert await limiter.hit("a") is True
    assert await limiter.hit("a") is True
    assert await limiter.hit("a") is False
    assert await limiter.hit("b") is True

    limiter.reset()
    assert await limiter.hit("a") is True


@pytest.mark.asyncio
async def test_limiter_window_slides():
    limiter = RateLimiter(limit=1, window_seconds=10)

    assert await limiter.hit("ip") is True
    assert await limiter.hit("ip") is False

    hits = limiter._hits["ip"]
    for index in range(len(hits)):
        hits[index] -= 11
    assert await limiter.hit("ip") is True


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory():
    limiter = RateLimiter(limit=1, window_seconds=60, backend="redis", redis_url="redis://localhost:1")

    with patch.object(limiter, "_hit_redis", AsyncMock(side_effect=ConnectionError("refused"))):
        assert await limiter.hit("ip") is True
        assert await limiter.hit("ip") is False


@pytest.mark.asyncio
async def test_graph_api_returns_429_over_quota(limited_client):
    statuses = []
    for _ in range(3):
        response = await limited_client.post(
            "/api/login", json={"username": "frank"}, headers={"X-Forwarded-For": "9.9.9.9"}
        )
        statuses.append(response.status_code)

    assert statuses == [200, 200, 429]
    assert response.json() == {"detail": RATE_LIMIT_DETAIL}

    other_ip = await limited_client.post(
        "/api/login", json={"username": "frank"}, headers={"X-Forwarded-For": "8.8.8.8"}
    )
    assert other_ip.status_code == 200


@pytest.mark.asyncio
async def test_quota_is_shared_across_graph_routers(limited_client):
    headers = {"X-Forwarded-For": "7.7.7.7"}
    with patch("knowledge.llm.get_openai_client", return_value=None):
        first = await limited_client.post("/api/login", json={"username": "gina"}, headers=headers)
        second = await limited_client.post("/api/expand-concept", json={"concept": "Waits"}, headers=headers)
        third = await limited_client.post("/api/expand-concept", json={"concept": "Waits"}, headers=headers)

    assert [first.status_code, second.status_code, third.status_code] == [200, 200, 429]


@pytest.mark.asyncio
async def test_content_routes_are_not_rate_limited(limited_client):
    headers = {"X-Forwarded-For": "6.6.6.6"}
    statuses = [
        (await limited_client.get("/api/health/live", headers=headers)).status_code
        for _ in range(5)
    ]
    assert statuses == [200] * 5

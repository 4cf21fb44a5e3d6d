"""
Tests for the fixed-window rate limiter and its use on the AI endpoints.
"""

import pytest
from fastapi import status
from httpx import AsyncClient

from estate_api.models.user import User
from estate_api.utils.exceptions import RateLimitExceededError
from estate_api.utils.rate_limit import FixedWindowRateLimiter
from tests.conftest import auth_headers


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter:
    """Window arithmetic with a hand-driven clock."""

    def test_counts_down(self):
        limiter = FixedWindowRateLimiter("test", max_requests=3, window_seconds=60, clock=FakeClock())

        assert [limiter.hit("a") for _ in range(3)] == [2, 1, 0]

    def test_blocks_after_quota(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter("test", max_requests=2, window_seconds=60, clock=clock)
        limiter.hit("a")
        limiter.hit("a")
        clock.now += 15

        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.hit("a")

        assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert exc_info.value.headers["Retry-After"] == "45"

    def test_new_window_after_expiry(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter("test", max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")
        clock.now += 61

        assert limiter.hit("a") == 0

    def test_window_is_inclusive_of_its_end(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter("test", max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")
        clock.now += 60

        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.hit("a")

        assert exc_info.value.headers["Retry-After"] == "1"

    def test_keys_are_independent(self):
        limiter = FixedWindowRateLimiter("test", max_requests=1, window_seconds=60, clock=FakeClock())
        limiter.hit("a")

        assert limiter.hit("b") == 0

    def test_reset(self):
        limiter = FixedWindowRateLimiter("test", max_requests=1, window_seconds=60, clock=FakeClock())
        limiter.hit("a")
        limiter.reset()

        assert limiter.hit("a") == 0

    def test_expired_windows_are_pruned(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter("test", max_requests=5, window_seconds=60, clock=clock, prune_threshold=2)
        limiter.hit("a")
        limiter.hit("b")
        clock.now += 120

        limiter.hit("c")

        assert set(limiter.request_counts) == {"c"}


class TestEndpointRateLimits:
    """Quotas on the AI endpoints."""

    async def test_chat_limit_per_ip(self, client: AsyncClient, fake_ai):
        headers = {"X-Forwarded-For": "198.51.100.4"}
        for _ in range(20):
            response = await client.post("/api/ai/chat", headers=headers, json={"message": "hi"})
            assert response.status_code == status.HTTP_200_OK

        blocked = await client.post("/api/ai/chat", headers=headers, json={"message": "hi"})
        other_ip = await client.post("/api/ai/chat", headers={"X-Forwarded-For": "198.51.100.5"},
                                     json={"message": "hi"})

        assert blocked.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert blocked.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(blocked.headers["Retry-After"]) > 0
        assert other_ip.status_code == status.HTTP_200_OK

    async def test_invalid_requests_use_quota(self, client: AsyncClient, fake_ai):
        headers = {"X-Forwarded-For": "198.51.100.9"}
        for _ in range(20):
            await client.post("/api/ai/chat", headers=headers, json={"message": ""})

        response = await client.post("/api/ai/chat", headers=headers, json={"message": "hi"})

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert fake_ai.messages == []

    async def test_description_limit_per_agent(self, client: AsyncClient, agent: User, other_agent: User,
                                               fake_ai):
        body = {"type": "House", "price": 1000000}
        for _ in range(10):
            response = await client.post("/api/ai/generate-description", headers=auth_headers(agent), json=body)
            assert response.status_code == status.HTTP_200_OK

        blocked = await client.post("/api/ai/generate-description", headers=auth_headers(agent), json=body)
        other = await client.post("/api/ai/generate-description", headers=auth_headers(other_agent), json=body)

        assert blocked.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert "Retry-After" in blocked.headers
        assert other.status_code == status.HTTP_200_OK

"""Tests for fixed-window rate limiting."""

import asyncio
from datetime import timedelta

import pytest
from conftest import make_config

from clientportal.config import RateLimitRule
from clientportal.core.core import Core
from clientportal.errors import StoreUnavailableError


@pytest.fixture
def limiter(storage, clock):
    config = make_config(
        rate_limits={
            "test": RateLimitRule(limit=5, window_seconds=60),
            "burst": RateLimitRule(limit=10, window_seconds=60),
        }
    )
    return Core(config, storage, clock).services.rate_limit


class TestCheck:
    @pytest.mark.asyncio
    async def test_sixth_request_in_window_is_blocked(self, limiter, clock):
        decisions = [await limiter.check("ip:192.0.2.1", "test") for _ in range(6)]

        assert [d.allowed for d in decisions] == [True] * 5 + [False]
        assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0, 0]
        assert decisions[-1].reset_at == clock() + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_new_window_starts_after_expiry(self, limiter, clock):
        for _ in range(6):
            await limiter.check("ip:192.0.2.1", "test")
        clock.advance(seconds=60)

        decision = await limiter.check("ip:192.0.2.1", "test")

        assert decision.allowed
        assert decision.remaining == 4

    @pytest.mark.asyncio
    async def test_identities_are_counted_separately(self, limiter):
        for _ in range(5):
            await limiter.check("ip:192.0.2.1", "test")

        assert not (await limiter.check("ip:192.0.2.1", "test")).allowed
        assert (await limiter.check("ip:192.0.2.2", "test")).allowed

    @pytest.mark.asyncio
    async def test_route_classes_are_counted_separately(self, limiter):
        for _ in range(5):
            await limiter.check("ip:192.0.2.1", "test")

        assert (await limiter.check("ip:192.0.2.1", "burst")).allowed

    @pytest.mark.asyncio
    async def test_concurrent_requests_never_exceed_limit(self, limiter):
        decisions = await asyncio.gather(*(limiter.check("user:concurrent", "burst") for _ in range(20)))
        assert sum(d.allowed for d in decisions) == 10

    @pytest.mark.asyncio
    async def test_unknown_route_class_is_a_programming_error(self, limiter):
        with pytest.raises(ValueError, match="nonexistent"):
            await limiter.check("ip:192.0.2.1", "nonexistent")

    @pytest.mark.asyncio
    async def test_store_failure_blocks_and_reports(self, limiter, storage, monkeypatch):
        async def unavailable(*args):
            raise StoreUnavailableError("primary stepped down")

        monkeypatch.setattr(storage.rate_limits, "hit", unavailable)
        decision = await limiter.check("ip:192.0.2.1", "test")

        assert not decision.allowed
        assert decision.store_unavailable


class TestDefaultRules:
    def test_auth_is_stricter_than_api(self, core):
        auth = core.services.rate_limit.rule_for("auth")
        api = core.services.rate_limit.rule_for("api")
        assert (auth.limit, auth.window_seconds) == (10, 900)
        assert auth.limit / auth.window_seconds < api.limit / api.window_seconds

    @pytest.mark.asyncio
    async def test_eleventh_login_attempt_is_blocked(self, core):
        limiter = core.services.rate_limit
        decisions = [await limiter.check("ip:198.51.100.9", "auth") for _ in range(11)]
        assert [d.allowed for d in decisions] == [True] * 10 + [False]
        assert (await limiter.check("ip:198.51.100.9", "api")).allowed


class TestCounterMaintenance:
    @pytest.mark.asyncio
    async def test_delete_expired_keeps_live_windows(self, limiter, clock):
        await limiter.check("ip:192.0.2.1", "test")
        clock.advance(seconds=30)
        await limiter.check("ip:192.0.2.2", "test")
        clock.advance(seconds=30)

        assert await limiter.count_counters() == (2, 1)
        assert await limiter.delete_expired() == 1
        assert await limiter.count_counters() == (1, 0)

"""Unit tests for TrackedIdCache."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from matchscore.core.cache import TrackedIdCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TrackedIdCache(ttl_seconds=60, clock=clock)


class TestTrackedIdCache:
    def test_starts_empty_and_expired(self, cache):
        assert cache.is_expired is True
        assert cache.get() == frozenset()

    @pytest.mark.asyncio
    async def test_loads_once_within_ttl(self, cache, clock):
        loader = AsyncMock(return_value={"a", "b"})

        assert await cache.refresh_if_expired(loader) == frozenset({"a", "b"})
        clock.now = 59
        assert await cache.refresh_if_expired(loader) == frozenset({"a", "b"})

        loader.assert_awaited_once()
        assert cache.contains("a")
        assert not cache.contains("c")

    @pytest.mark.asyncio
    async def test_reloads_after_ttl(self, cache, clock):
        loader = AsyncMock(side_effect=[{"a"}, {"b"}])

        await cache.refresh_if_expired(loader)
        clock.now = 60

        assert cache.is_expired is True
        assert await cache.refresh_if_expired(loader) == frozenset({"b"})
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_previous_ids(self, cache, clock):
        loader = AsyncMock(side_effect=[{"a"}, ConnectionError("db down"), {"c"}])

        await cache.refresh_if_expired(loader)
        clock.now = 120
        assert await cache.refresh_if_expired(loader) == frozenset({"a"})
        assert cache.is_expired is True

        # Next call retries
        assert await cache.refresh_if_expired(loader) == frozenset({"c"})

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_load_once(self, cache):
        calls = 0

        async def loader():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return {"a"}

        results = await asyncio.gather(*(cache.refresh_if_expired(loader) for _ in range(5)))

        assert calls == 1
        assert all(result == frozenset({"a"}) for result in results)

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self, cache):
        loader = AsyncMock(return_value={"a"})

        await cache.refresh_if_expired(loader)
        cache.invalidate()
        await cache.refresh_if_expired(loader)

        assert loader.await_count == 2

"""Unit tests for the TTL cache."""

from __future__ import annotations

import pytest

from conftest import FakeClock
from guildlens.core.cache import TTLCache, health_key


@pytest.fixture
def cache(fake_clock: FakeClock) -> TTLCache:
    return TTLCache(default_ttl_seconds=60, clock=fake_clock)


class TestTTLCache:
    def test_get_before_expiry(self, cache: TTLCache, fake_clock: FakeClock) -> None:
        cache.set("k", 1)
        fake_clock.advance(59)
        assert cache.get("k") == 1

    def test_expires_after_ttl(self, cache: TTLCache, fake_clock: FakeClock) -> None:
        cache.set("k", 1, ttl_seconds=10)
        fake_clock.advance(10)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_delete_and_clear_prefix(self, cache: TTLCache) -> None:
        cache.set(health_key("g1"), "a")
        cache.set(health_key("g2"), "b")
        cache.set("other", "c")
        cache.delete("other")

        assert cache.clear_prefix("health:") == 2
        assert len(cache) == 0

    def test_cleanup_removes_expired_only(
        self, cache: TTLCache, fake_clock: FakeClock
    ) -> None:
        cache.set("short", 1, ttl_seconds=5)
        cache.set("long", 2, ttl_seconds=500)
        fake_clock.advance(6)

        assert cache.cleanup() == 1
        assert cache.get("long") == 2

    def test_stats(self, cache: TTLCache) -> None:
        cache.set("k", 1)
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.stats()
        assert stats == {"entries": 1, "hits": 2, "misses": 1, "hit_rate": 66.7}

    def test_empty_stats(self, cache: TTLCache) -> None:
        assert cache.stats()["hit_rate"] == 0.0

    @pytest.mark.asyncio
    async def test_get_or_set_calls_factory_once(self, cache: TTLCache) -> None:
        calls = 0

        async def factory() -> str:
            nonlocal calls
            calls += 1
            return "value"

        assert await cache.get_or_set("k", factory) == "value"
        assert await cache.get_or_set("k", factory) == "value"
        assert calls == 1

"""Integration tests for the analytics engine over the in-memory data source."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import pytest

from conftest import FakeClock, Seeder, at
from guildlens.analytics.engine import AnalyticsEngine
from guildlens.config import CacheConfig, RecommendationConfig
from guildlens.core.cache import TTLCache
from guildlens.core.models import MessageRecord
from guildlens.core.types import AlertType, Trend
from guildlens.storage.memory_repository import InMemoryRepository


@pytest.fixture
def engine(
    repo: InMemoryRepository, clock: Callable[[], datetime]
) -> AnalyticsEngine:
    return AnalyticsEngine(
        repo,
        recommendation_config=RecommendationConfig(
            max_results=5, quiet_min_previous=10, quiet_ratio=0.3
        ),
        clock=clock,
    )


class TestAnalyticsEngine:
    @pytest.mark.asyncio
    async def test_steady_guild_end_to_end(
        self, engine: AnalyticsEngine, seed: Seeder
    ) -> None:
        for day in range(14):
            await seed(70, days_back=day, authors=15)

        health = await engine.calculate_health_score("g1")
        insights = await engine.get_insights("g1")
        alerts = await engine.generate_alerts("g1")
        recs = await engine.generate_recommendations("g1")

        assert health.score == 86
        assert insights.total_messages == 490
        assert insights.new_authors == 0
        # Everyone active this week also posted last week
        assert [a.type for a in alerts] == [AlertType.ACTIVATION]
        assert [r.id for r in recs] == [
            "new_members_inactive",
            "peak_hour_event",
            "celebrate_top_channel",
            "weekly_recap",
        ]

    @pytest.mark.asyncio
    async def test_quiet_channel_recommendation(
        self, engine: AnalyticsEngine, seed: Seeder
    ) -> None:
        await seed(40, days_back=9, channel="memes", authors=5)
        await seed(40, days_back=9, channel="general", authors=5)
        await seed(1, days_back=1, channel="memes", authors=5)
        await seed(40, days_back=1, channel="general", authors=5)

        quiet = await engine.identify_quiet_channels("g1")
        recs = await engine.generate_recommendations("g1")

        assert [q.channel_id for q in quiet] == ["memes"]
        assert "quiet_channel" in [r.id for r in recs]

    @pytest.mark.asyncio
    async def test_alerts_for_dropping_guild(
        self, engine: AnalyticsEngine, seed: Seeder
    ) -> None:
        await seed(100, days_back=9, channel="c1", authors=5)
        await seed(40, days_back=2, channel="c1", authors=5)

        alerts = await engine.generate_alerts("g1")
        health = await engine.calculate_health_score("g1")

        assert {a.type for a in alerts} == {AlertType.ACTIVITY, AlertType.CHANNEL}
        assert health.trend is Trend.DOWN
        assert health.trend_percentage == pytest.approx(60)

    @pytest.mark.asyncio
    async def test_quick_summary(self, engine: AnalyticsEngine, seed: Seeder) -> None:
        await seed(21, days_back=3, authors=3)
        await seed(50, days_back=12, authors=9)

        summary = await engine.get_quick_summary("g1")

        assert summary.messages_last_7_days == 21
        assert summary.active_users_last_7_days == 3
        assert summary.avg_messages_per_day == pytest.approx(3)

    @pytest.mark.asyncio
    async def test_empty_guild_is_not_an_error(self, engine: AnalyticsEngine) -> None:
        health = await engine.calculate_health_score("g1")
        insights = await engine.get_insights("g1", days=30)

        assert health.messages_last_7_days == 0
        assert not insights.has_data
        assert await engine.generate_alerts("g1") == []

    @pytest.mark.asyncio
    async def test_bad_days_rejected(self, engine: AnalyticsEngine) -> None:
        with pytest.raises(ValueError):
            await engine.get_insights("g1", days=0)


class TestHealthCache:
    @pytest.mark.asyncio
    async def test_cached_until_ttl(
        self,
        repo: InMemoryRepository,
        seed: Seeder,
        fake_clock: FakeClock,
    ) -> None:
        cache = TTLCache(default_ttl_seconds=60, clock=fake_clock)
        engine = AnalyticsEngine(
            repo,
            cache=cache,
            cache_config=CacheConfig(enabled=True, health_ttl_seconds=30),
            clock=fake_clock,
        )
        await seed(10, days_back=1)

        first = await engine.calculate_health_score("g1")
        await repo.record_message(MessageRecord("g1", "c", "x", at(1)))
        fake_clock.advance(29)
        second = await engine.calculate_health_score("g1")

        assert second is first
        assert second.messages_last_7_days == 10
        assert cache.stats()["hits"] == 1

        # Past the 30 s health TTL the score is recomputed
        fake_clock.advance(2)
        third = await engine.calculate_health_score("g1")

        assert third is not first
        assert third.messages_last_7_days == 11
        assert cache.stats()["misses"] == 2

    @pytest.mark.asyncio
    async def test_uncached_by_default(
        self, engine: AnalyticsEngine, repo: InMemoryRepository, seed: Seeder
    ) -> None:
        await seed(10, days_back=1)
        await engine.calculate_health_score("g1")
        await repo.record_message(MessageRecord("g1", "c", "x", at(1)))

        health = await engine.calculate_health_score("g1")
        assert health.messages_last_7_days == 11

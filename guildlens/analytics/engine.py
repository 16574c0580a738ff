"""Entry point for callers: one object exposing every analytics operation."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from guildlens.analytics.alerts import AlertGenerator
from guildlens.analytics.health import HealthScorer
from guildlens.analytics.insights import InsightsGenerator
from guildlens.analytics.recommendations import RecommendationEngine, find_quiet_channels
from guildlens.config import (
    AlertConfig,
    CacheConfig,
    InsightsConfig,
    RecommendationConfig,
)
from guildlens.core.cache import TTLCache, health_key
from guildlens.core.models import (
    Alert,
    HealthScore,
    InsightsBundle,
    MetricsBundle,
    QuickSummary,
    QuietChannel,
    Recommendation,
)
from guildlens.core.periods import comparison_periods, date_range
from guildlens.core.utils import utcnow
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)

QUIET_CHANNEL_DAYS = 7


class AnalyticsEngine:
    """Wires the scorer, insights, alerts and recommendations to one data source.

    Every method is a fresh computation. The only state is the optional
    health-score cache, and only when one is injected.
    """

    def __init__(
        self,
        repository: ActivityRepository,
        insights_config: InsightsConfig | None = None,
        alert_config: AlertConfig | None = None,
        recommendation_config: RecommendationConfig | None = None,
        cache: TTLCache | None = None,
        cache_config: CacheConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock
        self._recommend_cfg = recommendation_config or RecommendationConfig()
        self._cache = cache
        self._health_ttl = (cache_config or CacheConfig()).health_ttl_seconds

        self._scorer = HealthScorer(repository, clock=clock)
        self._insights = InsightsGenerator(repository, insights_config, clock=clock)
        self._alerts = AlertGenerator(repository, alert_config, clock=clock)
        self._recommender = RecommendationEngine(config=self._recommend_cfg)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def calculate_health_score(self, guild_id: str) -> HealthScore:
        if self._cache is None:
            return await self._scorer.score(guild_id)
        return await self._cache.get_or_set(
            health_key(guild_id),
            lambda: self._scorer.score(guild_id),
            self._health_ttl,
        )

    async def get_insights(self, guild_id: str, days: int | None = None) -> InsightsBundle:
        return await self._insights.generate(guild_id, days)

    async def generate_alerts(self, guild_id: str) -> list[Alert]:
        return await self._alerts.generate(guild_id)

    async def generate_recommendations(self, guild_id: str) -> list[Recommendation]:
        health, insights, alerts, quiet = await asyncio.gather(
            self.calculate_health_score(guild_id),
            self._insights.generate(guild_id, QUIET_CHANNEL_DAYS),
            self._alerts.generate(guild_id),
            self.identify_quiet_channels(guild_id),
        )
        metrics = MetricsBundle(
            health=health,
            insights=insights,
            alerts=alerts,
            quiet_channels=quiet,
        )
        recommendations = self._recommender.recommend(metrics)
        logger.debug(
            "Generated %d recommendations for guild %s",
            len(recommendations),
            guild_id,
        )
        return recommendations

    async def identify_quiet_channels(self, guild_id: str) -> list[QuietChannel]:
        periods = comparison_periods(QUIET_CHANNEL_DAYS, self._clock())
        previous, current = await asyncio.gather(
            self._repo.channel_activity(guild_id, periods.previous),
            self._repo.channel_activity(guild_id, periods.current),
        )
        return find_quiet_channels(
            previous,
            current,
            min_previous=self._recommend_cfg.quiet_min_previous,
            ratio=self._recommend_cfg.quiet_ratio,
        )

    async def get_quick_summary(self, guild_id: str) -> QuickSummary:
        window = date_range(7, self._clock())
        messages, authors = await asyncio.gather(
            self._repo.message_count(guild_id, window),
            self._repo.active_author_count(guild_id, window),
        )
        return QuickSummary(
            messages_last_7_days=messages,
            active_users_last_7_days=authors,
            avg_messages_per_day=messages / 7,
        )

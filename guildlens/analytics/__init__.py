"""Health scoring, insights, alerts and recommendations."""

from guildlens.analytics.alerts import AlertGenerator
from guildlens.analytics.engine import AnalyticsEngine
from guildlens.analytics.health import HealthScorer
from guildlens.analytics.insights import InsightsGenerator
from guildlens.analytics.recommendations import (
    RecommendationEngine,
    RecommendationTemplate,
    get_quick_recommendation,
)

__all__ = [
    "AlertGenerator",
    "AnalyticsEngine",
    "HealthScorer",
    "InsightsGenerator",
    "RecommendationEngine",
    "RecommendationTemplate",
    "get_quick_recommendation",
]

"""Core models, types, and utilities."""

from guildlens.core.models import (
    Alert,
    ChannelActivity,
    DailyCount,
    HealthScore,
    InsightsBundle,
    MessageRecord,
    PeriodComparison,
    Recommendation,
    TimeSlot,
    TimeWindow,
    TrendResult,
)
from guildlens.core.types import AlertLevel, AlertType, HealthBand, Trend

__all__ = [
    "Alert",
    "AlertLevel",
    "AlertType",
    "ChannelActivity",
    "DailyCount",
    "HealthBand",
    "HealthScore",
    "InsightsBundle",
    "MessageRecord",
    "PeriodComparison",
    "Recommendation",
    "TimeSlot",
    "TimeWindow",
    "Trend",
    "TrendResult",
]

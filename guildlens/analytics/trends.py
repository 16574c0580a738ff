"""Period-over-period comparison."""

from __future__ import annotations

import asyncio
from datetime import datetime

from guildlens.core.models import ActivityComparison, PeriodActivity, TrendResult
from guildlens.core.periods import comparison_periods
from guildlens.core.types import Trend
from guildlens.storage.base_repository import ActivityRepository

# Changes within +/- this many percent count as "stable"
STABLE_BAND_PERCENT = 5.0


def classify_trend(current: int, previous: int) -> TrendResult:
    """Direction and absolute relative change from *previous* to *current*."""
    if previous > 0:
        change = (current - previous) / previous * 100
        if change > STABLE_BAND_PERCENT:
            trend = Trend.UP
        elif change < -STABLE_BAND_PERCENT:
            trend = Trend.DOWN
        else:
            trend = Trend.STABLE
        return TrendResult(trend=trend, percentage=abs(change))

    if current > 0:
        # Activity out of nothing counts as full growth
        return TrendResult(trend=Trend.UP, percentage=100.0)
    return TrendResult(trend=Trend.STABLE, percentage=0.0)


async def compare_activity(
    repository: ActivityRepository,
    guild_id: str,
    days: int,
    now: datetime | None = None,
) -> ActivityComparison:
    """Messages and authors of the last *days* days against the *days* before."""
    periods = comparison_periods(days, now)

    curr_messages, prev_messages, curr_authors, prev_authors = await asyncio.gather(
        repository.message_count(guild_id, periods.current),
        repository.message_count(guild_id, periods.previous),
        repository.active_author_count(guild_id, periods.current),
        repository.active_author_count(guild_id, periods.previous),
    )

    return ActivityComparison(
        current=PeriodActivity(
            window=periods.current,
            messages=curr_messages,
            authors=curr_authors,
        ),
        previous=PeriodActivity(
            window=periods.previous,
            messages=prev_messages,
            authors=prev_authors,
        ),
        result=classify_trend(curr_messages, prev_messages),
    )

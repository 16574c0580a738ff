"""Composite health score for a guild.

Score formula (0-100):
    activity    * 0.40   messages/day on a log10 scale
    engagement  * 0.30   messages per active member per week
    trend       * 0.20   week-over-week change
    consistency * 0.10   coefficient of variation of daily counts

Zero-data behaviour: activity 0, engagement 0, consistency 50 when fewer than
two days have data, trend 70 (stable). Callers tell "unhealthy" from "no data
yet" by the raw counts carried on :class:`HealthScore`.
"""

from __future__ import annotations

import asyncio
import logging
import math
import statistics
from datetime import datetime
from typing import Callable, Sequence

from guildlens.analytics.trends import compare_activity
from guildlens.core.models import ActivityMetrics, HealthComponents, HealthScore
from guildlens.core.periods import date_range
from guildlens.core.types import HealthBand, Trend
from guildlens.core.utils import clamp, round_half_up, utcnow
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)

WEIGHTS: dict[str, float] = {
    "activity": 0.40,
    "engagement": 0.30,
    "trend": 0.20,
    "consistency": 0.10,
}

SCORE_DAYS = 7
LONG_DAYS = 30

# Messages per active member per week considered healthy
IDEAL_RATIO_LOW = 5.0
IDEAL_RATIO_HIGH = 20.0


# ---------------------------------------------------------------------------
# Component scores
# ---------------------------------------------------------------------------


def activity_score(avg_messages_per_day: float) -> int:
    """Log-scaled volume: 0 msgs -> 0, ~10 -> 52, ~50 -> 85, 100+ -> 100."""
    if avg_messages_per_day <= 0:
        return 0
    if avg_messages_per_day >= 100:
        return 100
    # log10(1) = 0, log10(101) ~ 2
    return clamp(round_half_up(math.log10(avg_messages_per_day + 1) / 2 * 100))


def engagement_score(active_users: int, avg_messages_per_day: float) -> int:
    """Penalises both lurking communities and a few members doing all the talking."""
    if active_users <= 0:
        return 0

    ratio = avg_messages_per_day * 7 / active_users

    if IDEAL_RATIO_LOW <= ratio <= IDEAL_RATIO_HIGH:
        return 100
    if ratio < IDEAL_RATIO_LOW:
        return clamp(round_half_up(ratio / IDEAL_RATIO_LOW * 100))

    penalty = min(40.0, (ratio - IDEAL_RATIO_HIGH) * 1.33)
    return clamp(round_half_up(100 - penalty))


def trend_score(trend: Trend | str, percentage: float) -> int:
    trend = Trend(trend)
    if trend is Trend.STABLE:
        return 70
    if trend is Trend.UP:
        # +50% growth reaches the cap
        return clamp(round_half_up(70 + min(30.0, percentage * 0.6)))
    # -10% -> 60, -30% -> 40, -50% or worse -> 20
    return max(20, round_half_up(70 - min(50.0, percentage)))


def consistency_score(daily_counts: Sequence[int]) -> int:
    """100 for perfectly even days, 0 once stddev reaches twice the mean."""
    if len(daily_counts) < 2:
        return 50

    mean = statistics.fmean(daily_counts)
    if mean == 0:
        return 0

    cv = statistics.pstdev(daily_counts) / mean
    return clamp(round_half_up(100 - cv * 50))


def combine(components: HealthComponents) -> int:
    raw = (
        components.activity * WEIGHTS["activity"]
        + components.engagement * WEIGHTS["engagement"]
        + components.trend * WEIGHTS["trend"]
        + components.consistency * WEIGHTS["consistency"]
    )
    return clamp(round_half_up(raw))


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

_BAND_TEXT: dict[HealthBand, str] = {
    HealthBand.EXCELLENT: "Excellent! Your server is very healthy.",
    HealthBand.GOOD: "Good! Your server is doing well.",
    HealthBand.WARNING: "Attention! Your server needs some care.",
    HealthBand.CRITICAL: "Critical! Your server needs urgent action.",
}


def interpret(
    score: int,
    trend: Trend | str,
    percentage: float,
    avg_messages: float,
    active_users: int,
) -> str:
    """Human-readable summary; a pure function of its arguments."""
    status = _BAND_TEXT[HealthBand.from_score(score)]

    trend = Trend(trend)
    if trend is Trend.UP and percentage > 5:
        trend_text = (
            f"Activity grew {percentage:.1f}% compared to the previous week. "
            "Keep it up!"
        )
    elif trend is Trend.DOWN and percentage > 10:
        trend_text = (
            f"Activity dropped {percentage:.1f}% compared to the previous week. "
            "Consider some engagement actions."
        )
    else:
        trend_text = "Activity is relatively stable."

    if avg_messages >= 50:
        volume_text = "Message volume is high."
    elif avg_messages >= 10:
        volume_text = "Message volume is moderate."
    else:
        volume_text = "Message volume is low."

    return (
        f"{status}\n\n{trend_text}\n\n"
        f"{volume_text} {active_users} active members in the last 7 days."
    )


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class HealthScorer:
    """Fetches a guild's recent activity and turns it into a :class:`HealthScore`.

    Data source errors propagate to the caller untouched.
    """

    def __init__(
        self,
        repository: ActivityRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def score(self, guild_id: str) -> HealthScore:
        now = self._clock()
        week = date_range(SCORE_DAYS, now)
        month = date_range(LONG_DAYS, now)

        messages_7, messages_30, authors_7, daily, comparison = await asyncio.gather(
            self._repo.message_count(guild_id, week),
            self._repo.message_count(guild_id, month),
            self._repo.active_author_count(guild_id, week),
            self._repo.daily_message_counts(guild_id, week),
            compare_activity(self._repo, guild_id, SCORE_DAYS, now),
        )
        metrics = ActivityMetrics(
            message_count=messages_7,
            active_author_count=authors_7,
            daily_counts=daily,
        )

        avg_per_day = metrics.message_count / SCORE_DAYS
        components = HealthComponents(
            activity=activity_score(avg_per_day),
            engagement=engagement_score(metrics.active_author_count, avg_per_day),
            trend=trend_score(comparison.trend, comparison.percentage),
            consistency=consistency_score([d.count for d in metrics.daily_counts]),
        )
        final = combine(components)

        logger.debug(
            "Health score for %s: %d (a=%d e=%d t=%d c=%d)",
            guild_id,
            final,
            components.activity,
            components.engagement,
            components.trend,
            components.consistency,
        )

        return HealthScore(
            score=final,
            components=components,
            interpretation=interpret(
                final,
                comparison.trend,
                comparison.percentage,
                avg_per_day,
                metrics.active_author_count,
            ),
            band=HealthBand.from_score(final),
            messages_last_7_days=messages_7,
            messages_last_30_days=messages_30,
            active_users_last_7_days=authors_7,
            avg_messages_per_day=avg_per_day,
            trend=comparison.trend,
            trend_percentage=comparison.percentage,
        )

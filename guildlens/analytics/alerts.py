"""Threshold alerts comparing the current period with the previous one."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from guildlens.analytics.trends import compare_activity
from guildlens.config import AlertConfig
from guildlens.core.models import ActivityComparison, Alert, ChannelActivity
from guildlens.core.periods import comparison_periods
from guildlens.core.types import AlertLevel, AlertType, Trend
from guildlens.core.utils import utcnow
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)


def sort_by_severity(alerts: list[Alert]) -> list[Alert]:
    """Most severe first; equal levels keep their generation order."""
    return sorted(alerts, key=lambda a: a.level.rank)


class AlertGenerator:
    """Stateless rule evaluation. Every call recomputes from scratch.

    Rules, in generation order:
        1. guild-wide activity drop
        2. per-channel drop, one alert per channel
        3. few first-time authors despite healthy volume
    """

    def __init__(
        self,
        repository: ActivityRepository,
        config: AlertConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._cfg = config or AlertConfig()
        self._clock = clock

    async def generate(self, guild_id: str) -> list[Alert]:
        now = self._clock()
        days = self._cfg.comparison_days
        periods = comparison_periods(days, now)

        comparison, prev_channels, curr_channels, new_authors = await asyncio.gather(
            compare_activity(self._repo, guild_id, days, now),
            self._repo.channel_activity(guild_id, periods.previous),
            self._repo.channel_activity(guild_id, periods.current),
            self._repo.new_authors_count(guild_id, periods.current),
        )

        alerts: list[Alert] = []
        activity = self.activity_drop_alert(comparison)
        if activity:
            alerts.append(activity)
        alerts.extend(self.channel_drop_alerts(prev_channels, curr_channels))
        activation = self.activation_alert(comparison.current.messages, new_authors)
        if activation:
            alerts.append(activation)

        alerts = sort_by_severity(alerts)
        logger.debug("Generated %d alerts for guild %s", len(alerts), guild_id)
        return alerts

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def activity_drop_alert(self, comparison: ActivityComparison) -> Alert | None:
        pct = comparison.percentage
        if comparison.trend is not Trend.DOWN or pct < self._cfg.activity_drop_threshold:
            return None

        level = (
            AlertLevel.CRITICAL
            if pct >= self._cfg.critical_drop_threshold
            else AlertLevel.WARNING
        )
        return Alert(
            type=AlertType.ACTIVITY,
            level=level,
            title="Overall Activity Drop",
            description=(
                f"Activity dropped {pct:.1f}% compared to the previous period. "
                f"From {comparison.previous.messages} to "
                f"{comparison.current.messages} messages."
            ),
        )

    def channel_drop_alerts(
        self,
        previous: list[ChannelActivity],
        current: list[ChannelActivity],
    ) -> list[Alert]:
        current_counts = {c.channel_id: c.count for c in current}
        alerts: list[Alert] = []

        for prev in previous:
            # Only channels that were reasonably active before
            if prev.count < self._cfg.min_channel_messages:
                continue

            curr_count = current_counts.get(prev.channel_id, 0)
            drop = (prev.count - curr_count) / prev.count * 100
            if drop < self._cfg.channel_drop_threshold:
                continue

            level = (
                AlertLevel.WARNING
                if drop >= self._cfg.channel_warning_threshold
                else AlertLevel.INFO
            )
            alerts.append(
                Alert(
                    type=AlertType.CHANNEL,
                    level=level,
                    title="Channel at Risk",
                    description=(
                        f"<#{prev.channel_id}> dropped {drop:.0f}% "
                        f"(from {prev.count} to {curr_count} msgs)."
                    ),
                    channel_id=prev.channel_id,
                )
            )

        return alerts

    def activation_alert(self, current_messages: int, new_authors: int) -> Alert | None:
        if (
            current_messages <= self._cfg.activation_min_messages
            or new_authors > self._cfg.activation_max_new_authors
        ):
            return None
        return Alert(
            type=AlertType.ACTIVATION,
            level=AlertLevel.INFO,
            title="Few New Participants",
            description=(
                f"Only {new_authors} member(s) wrote for the first time this period. "
                "Consider ways to encourage new members to take part."
            ),
        )

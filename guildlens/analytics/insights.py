"""Ranked facts about a window: busiest channels, peak hours, newcomers."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable

from guildlens.config import InsightsConfig
from guildlens.core.models import ChannelActivity, HourlyCount, InsightsBundle, TimeSlot
from guildlens.core.periods import date_range, time_slot, time_slot_label
from guildlens.core.utils import utcnow
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)


def rank_channels(
    channels: list[ChannelActivity],
    limit: int | None = None,
) -> list[ChannelActivity]:
    """Count descending; equal counts fall back to channel id ascending."""
    ranked = sorted(channels, key=lambda c: (-c.count, c.channel_id))
    return ranked if limit is None else ranked[:limit]


def peak_time_slots(
    hourly: list[HourlyCount],
    slot_size: int = 3,
    limit: int = 3,
) -> list[TimeSlot]:
    """Fold hour-of-day counts into *slot_size*-hour slots and rank them."""
    totals: dict[int, int] = defaultdict(int)
    for row in hourly:
        totals[time_slot(row.hour, slot_size)] += row.count

    slots = [
        TimeSlot(
            slot_start=start,
            label=time_slot_label(start, slot_size),
            count=count,
        )
        for start, count in totals.items()
    ]
    slots.sort(key=lambda s: (-s.count, s.slot_start))
    return slots[:limit]


class InsightsGenerator:
    """Builds an :class:`InsightsBundle` for one guild and window."""

    def __init__(
        self,
        repository: ActivityRepository,
        config: InsightsConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._cfg = config or InsightsConfig()
        self._clock = clock

    async def generate(self, guild_id: str, days: int | None = None) -> InsightsBundle:
        if days is None:
            days = self._cfg.days
        window = date_range(days, self._clock())

        channels, hourly, new_authors, total_messages, total_authors = (
            await asyncio.gather(
                self._repo.channel_activity(guild_id, window),
                self._repo.hourly_activity(guild_id, window),
                self._repo.new_authors_count(guild_id, window),
                self._repo.message_count(guild_id, window),
                self._repo.active_author_count(guild_id, window),
            )
        )

        bundle = InsightsBundle(
            top_channels=rank_channels(channels, self._cfg.top_channels),
            peak_slots=peak_time_slots(
                hourly,
                slot_size=self._cfg.slot_hours,
                limit=self._cfg.peak_slots,
            ),
            new_authors=new_authors,
            total_messages=total_messages,
            total_authors=total_authors,
            window=window,
            days=days,
        )

        if not bundle.has_data:
            logger.debug("No activity for %s in the last %d days", guild_id, days)
        return bundle

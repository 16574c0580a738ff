"""In-process storage backend, used for local runs and tests."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime

from guildlens.core.models import (
    ChannelActivity,
    DailyCount,
    HourlyCount,
    MessageRecord,
    TimeWindow,
)
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)


class InMemoryRepository(ActivityRepository):
    """Keeps every message in a list and answers aggregates by scanning it.

    Ordering rules match :class:`PostgresRepository` so both backends rank
    ties the same way.
    """

    def __init__(self) -> None:
        self._messages: list[MessageRecord] = []
        self._connected = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise RuntimeError("Repository not connected")

    def _in_window(self, guild_id: str, window: TimeWindow) -> list[MessageRecord]:
        self._require_connection()
        return [
            m
            for m in self._messages
            if m.guild_id == guild_id and window.contains(m.created_at)
        ]

    async def connect(self) -> None:
        self._connected = True
        logger.info("In-memory repository ready")

    async def close(self) -> None:
        self._connected = False

    async def is_connected(self) -> bool:
        return self._connected

    async def record_message(self, record: MessageRecord) -> None:
        self._require_connection()
        self._messages.append(record)

    async def message_count(self, guild_id: str, window: TimeWindow) -> int:
        return len(self._in_window(guild_id, window))

    async def active_author_count(self, guild_id: str, window: TimeWindow) -> int:
        return len({m.author_id for m in self._in_window(guild_id, window)})

    async def channel_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[ChannelActivity]:
        counts = Counter(m.channel_id for m in self._in_window(guild_id, window))
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [ChannelActivity(channel_id=c, count=n) for c, n in ranked]

    async def hourly_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[HourlyCount]:
        counts = Counter(m.created_at.hour for m in self._in_window(guild_id, window))
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [HourlyCount(hour=h, count=n) for h, n in ranked]

    async def new_authors_count(self, guild_id: str, window: TimeWindow) -> int:
        self._require_connection()
        seen_before = {
            m.author_id
            for m in self._messages
            if m.guild_id == guild_id and m.created_at < window.start
        }
        return len(
            {m.author_id for m in self._in_window(guild_id, window)} - seen_before
        )

    async def daily_message_counts(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[DailyCount]:
        counts = Counter(m.created_at.date() for m in self._in_window(guild_id, window))
        return [DailyCount(date=d, count=counts[d]) for d in sorted(counts)]

    async def guild_ids(self) -> list[str]:
        self._require_connection()
        return sorted({m.guild_id for m in self._messages})

    async def prune_messages(self, before: datetime) -> int:
        self._require_connection()
        kept = [m for m in self._messages if m.created_at >= before]
        count = len(self._messages) - len(kept)
        self._messages = kept
        if count:
            logger.info("Pruned %d old messages", count)
        return count

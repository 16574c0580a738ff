"""Abstract activity data source, so PostgreSQL can be swapped for any other store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from guildlens.core.models import (
    ChannelActivity,
    DailyCount,
    HourlyCount,
    MessageRecord,
    TimeWindow,
)


class ActivityRepository(ABC):
    """Contract for all storage backends.

    Every window is inclusive on both ends. The analytics layer only ever
    asks for aggregates; it never sees individual message rows.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection / pool and ensure schema exists."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release all connections."""
        ...

    @abstractmethod
    async def is_connected(self) -> bool:
        """Health probe."""
        ...

    @abstractmethod
    async def record_message(self, record: MessageRecord) -> None:
        """Persist one message."""
        ...

    @abstractmethod
    async def message_count(self, guild_id: str, window: TimeWindow) -> int:
        ...

    @abstractmethod
    async def active_author_count(self, guild_id: str, window: TimeWindow) -> int:
        """Count distinct authors with at least one message in *window*."""
        ...

    @abstractmethod
    async def channel_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[ChannelActivity]:
        """Per-channel message counts, count descending then channel id."""
        ...

    @abstractmethod
    async def hourly_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[HourlyCount]:
        """Message counts grouped by UTC hour of day (hours with no rows omitted)."""
        ...

    @abstractmethod
    async def new_authors_count(self, guild_id: str, window: TimeWindow) -> int:
        """Count authors whose first message ever falls inside *window*."""
        ...

    @abstractmethod
    async def daily_message_counts(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[DailyCount]:
        """Per-UTC-day counts in ascending date order (empty days omitted)."""
        ...

    @abstractmethod
    async def guild_ids(self) -> list[str]:
        """All guilds that have at least one recorded message."""
        ...

    @abstractmethod
    async def prune_messages(self, before: datetime) -> int:
        """Delete messages older than *before*. Return count deleted."""
        ...

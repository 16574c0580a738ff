"""PostgreSQL storage backend using asyncpg."""

from __future__ import annotations

import logging
from datetime import datetime

import asyncpg

from guildlens.config import DatabaseConfig
from guildlens.core.models import (
    ChannelActivity,
    DailyCount,
    HourlyCount,
    MessageRecord,
    TimeWindow,
)
from guildlens.storage.base_repository import ActivityRepository

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS messages (
    id              BIGSERIAL       PRIMARY KEY,
    guild_id        TEXT            NOT NULL,
    channel_id      TEXT            NOT NULL,
    author_id       TEXT            NOT NULL,
    created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
    length          INTEGER         NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_messages_guild_time
    ON messages (guild_id, created_at);

CREATE INDEX IF NOT EXISTS idx_messages_guild_author_time
    ON messages (guild_id, author_id, created_at);

CREATE INDEX IF NOT EXISTS idx_messages_guild_channel_time
    ON messages (guild_id, channel_id, created_at);
"""


class PostgresRepository(ActivityRepository):
    """asyncpg-backed storage with connection pooling."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._pool: asyncpg.Pool | None = None

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Repository not connected")
        return self._pool

    async def connect(self) -> None:
        self._pool = await asyncpg.create_pool(
            dsn=self._config.dsn,
            min_size=self._config.pool_min,
            max_size=self._config.pool_max,
        )
        async with self._pool.acquire() as conn:
            await conn.execute(_SCHEMA_SQL)
        logger.info(
            "PostgreSQL pool created (%d-%d) and schema ensured",
            self._config.pool_min,
            self._config.pool_max,
        )

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL pool closed")

    async def is_connected(self) -> bool:
        if not self._pool:
            return False
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (OSError, asyncpg.PostgresError):
            return False

    async def record_message(self, record: MessageRecord) -> None:
        pool = self._require_pool()
        sql = """
            INSERT INTO messages
                (guild_id, channel_id, author_id, created_at, length)
            VALUES ($1, $2, $3, $4, $5)
        """
        async with pool.acquire() as conn:
            await conn.execute(
                sql,
                record.guild_id,
                record.channel_id,
                record.author_id,
                record.created_at,
                record.length,
            )
        logger.debug(
            "Message recorded: guild=%s channel=%s",
            record.guild_id,
            record.channel_id,
        )

    async def message_count(self, guild_id: str, window: TimeWindow) -> int:
        pool = self._require_pool()
        sql = """
            SELECT COUNT(*)::int
            FROM messages
            WHERE guild_id = $1
              AND created_at >= $2
              AND created_at <= $3
        """
        async with pool.acquire() as conn:
            return await conn.fetchval(sql, guild_id, window.start, window.end) or 0

    async def active_author_count(self, guild_id: str, window: TimeWindow) -> int:
        pool = self._require_pool()
        sql = """
            SELECT COUNT(DISTINCT author_id)::int
            FROM messages
            WHERE guild_id = $1
              AND created_at >= $2
              AND created_at <= $3
        """
        async with pool.acquire() as conn:
            return await conn.fetchval(sql, guild_id, window.start, window.end) or 0

    async def channel_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[ChannelActivity]:
        pool = self._require_pool()
        sql = """
            SELECT channel_id, COUNT(*)::int AS count
            FROM messages
            WHERE guild_id = $1
              AND created_at >= $2
              AND created_at <= $3
            GROUP BY channel_id
            ORDER BY count DESC, channel_id ASC
        """
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, guild_id, window.start, window.end)
        return [
            ChannelActivity(channel_id=r["channel_id"], count=r["count"])
            for r in rows
        ]

    async def hourly_activity(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[HourlyCount]:
        pool = self._require_pool()
        sql = """
            SELECT EXTRACT(HOUR FROM created_at AT TIME ZONE 'UTC')::int AS hour,
                   COUNT(*)::int                                        AS count
            FROM messages
            WHERE guild_id = $1
              AND created_at >= $2
              AND created_at <= $3
            GROUP BY 1
            ORDER BY count DESC, hour ASC
        """
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, guild_id, window.start, window.end)
        return [HourlyCount(hour=r["hour"], count=r["count"]) for r in rows]

    async def new_authors_count(self, guild_id: str, window: TimeWindow) -> int:
        pool = self._require_pool()
        # Authors who posted in the window but never before its start
        sql = """
            SELECT COUNT(DISTINCT m.author_id)::int
            FROM messages m
            WHERE m.guild_id = $1
              AND m.created_at >= $2
              AND m.created_at <= $3
              AND NOT EXISTS (
                  SELECT 1 FROM messages m2
                  WHERE m2.guild_id = $1
                    AND m2.author_id = m.author_id
                    AND m2.created_at < $2
              )
        """
        async with pool.acquire() as conn:
            return await conn.fetchval(sql, guild_id, window.start, window.end) or 0

    async def daily_message_counts(
        self,
        guild_id: str,
        window: TimeWindow,
    ) -> list[DailyCount]:
        pool = self._require_pool()
        sql = """
            SELECT (created_at AT TIME ZONE 'UTC')::date AS day,
                   COUNT(*)::int                         AS count
            FROM messages
            WHERE guild_id = $1
              AND created_at >= $2
              AND created_at <= $3
            GROUP BY 1
            ORDER BY day ASC
        """
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, guild_id, window.start, window.end)
        return [DailyCount(date=r["day"], count=r["count"]) for r in rows]

    async def guild_ids(self) -> list[str]:
        pool = self._require_pool()
        sql = "SELECT DISTINCT guild_id FROM messages ORDER BY guild_id"
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql)
        return [r["guild_id"] for r in rows]

    async def prune_messages(self, before: datetime) -> int:
        pool = self._require_pool()
        sql = "DELETE FROM messages WHERE created_at < $1"
        async with pool.acquire() as conn:
            result = await conn.execute(sql, before)
        count = int(result.split()[-1])
        if count:
            logger.info("Pruned %d old messages", count)
        return count

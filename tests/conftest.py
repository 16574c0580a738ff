"""Shared fixtures: a fixed clock and a connected in-memory repository."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio

from guildlens.core.models import MessageRecord
from guildlens.storage.memory_repository import InMemoryRepository

# Saturday midday; the current 7-day window is June 9-15, the previous June 2-8
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

Seeder = Callable[..., Awaitable[None]]


def at(days_back: int, hour: int = 10) -> datetime:
    """Instant *days_back* calendar days before ``NOW``, at *hour* UTC."""
    return NOW.replace(hour=hour) - timedelta(days=days_back)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest_asyncio.fixture
async def repo() -> AsyncIterator[InMemoryRepository]:
    repository = InMemoryRepository()
    await repository.connect()
    yield repository
    await repository.close()


@pytest.fixture
def seed(repo: InMemoryRepository) -> Seeder:
    async def _seed(
        count: int,
        days_back: int,
        channel: str = "general",
        guild: str = "g1",
        hour: int = 10,
        authors: int = 1,
        author_prefix: str = "u",
    ) -> None:
        for i in range(count):
            await repo.record_message(
                MessageRecord(
                    guild_id=guild,
                    channel_id=channel,
                    author_id=f"{author_prefix}{i % authors}",
                    created_at=at(days_back, hour),
                )
            )

    return _seed


class FakeClock:
    """Callable clock that starts at ``NOW`` and only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()

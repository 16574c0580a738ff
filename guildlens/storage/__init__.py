"""Storage layer."""

from guildlens.storage.base_repository import ActivityRepository
from guildlens.storage.memory_repository import InMemoryRepository
from guildlens.storage.postgres_repository import PostgresRepository

__all__ = ["ActivityRepository", "InMemoryRepository", "PostgresRepository"]

"""In-process TTL cache, injected into the engine when caching is wanted."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from guildlens.core.utils import utcnow

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value store whose entries expire after a per-entry TTL.

    Expiry is checked lazily on read and in bulk by :meth:`cleanup`; nothing
    runs in the background.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 60.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        # key -> (expires_at, value)
        self._entries: dict[str, tuple[datetime, Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None or self._clock() >= entry[0]:
            self._entries.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        return entry[1]

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        self._entries[key] = (self._clock() + timedelta(seconds=ttl), value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for k in doomed:
            del self._entries[k]
        if doomed:
            logger.debug("Cleared %d cache entries matching %s", len(doomed), prefix)
        return len(doomed)

    def cleanup(self) -> int:
        """Remove expired entries to prevent memory bloat."""
        now = self._clock()
        expired = [k for k, (expires, _) in self._entries.items() if now >= expires]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: float | None = None,
    ) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        self.set(key, value, ttl_seconds)
        return value

    def stats(self) -> dict[str, Any]:
        total = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total else 0.0,
        }


def health_key(guild_id: str) -> str:
    return f"health:{guild_id}"

# team_resolver/cache/resolution_cache.py
"""Process-wide TTL cache for resolution outcomes.

Both positive results and negative ones (``None``, the name did not resolve)
are stored, with the same fixed lifetime counted from the write. Reads never
extend an entry's life. When full, the least recently written or read entry
is evicted.
"""

import time
from collections import OrderedDict
from typing import Callable, NamedTuple, Optional, Tuple

from loguru import logger

from team_resolver.config.settings import settings
from team_resolver.models.resolution import ResolvedTeam
from team_resolver.utils.misc_utils import generate_cache_key


class CacheError(Exception):
    """Custom exception for resolution cache failures."""

    pass


class _CacheEntry(NamedTuple):
    value: Optional[ResolvedTeam]
    expires_at: float


def get_cache_key(name: str, game: str) -> str:
    """Cache key for a raw query name within a game."""
    return generate_cache_key("team-resolve", game, name)


class ResolutionCache:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds or settings.resolution_cache_ttl_seconds
        self.max_size = max_size or settings.resolution_cache_max_size
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()

    def get(self, key: str) -> Tuple[bool, Optional[ResolvedTeam]]:
        """Returns ``(found, value)``; ``(True, None)`` is a cached negative."""
        if not key:
            raise CacheError("Cache key must be a non-empty string")

        entry = self._entries.get(key)
        if entry is None:
            return False, None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return False, None

        self._entries.move_to_end(key)
        return True, entry.value

    def set(self, key: str, value: Optional[ResolvedTeam]) -> None:
        if not key:
            raise CacheError("Cache key must be a non-empty string")

        self._entries[key] = _CacheEntry(value, self._clock() + self.ttl_seconds)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Resolution cache full, evicted '{evicted}'")

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

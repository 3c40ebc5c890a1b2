"""
In-process cache implementation.

Entries are (value, inserted_at, ttl) triples kept in a plain dict owned by
whoever constructs the cache; nothing here is a module-level singleton.
Expiry is lazy: a stale entry is dropped the next time it is read.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[V]):
    """A cached value with its insertion time and time-to-live."""

    value: V
    inserted_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.inserted_at < self.ttl


class TTLCache(Generic[K, V]):
    """
    Timestamp-keyed cache with lazy expiry.

    Args:
        default_ttl: Time to live in seconds for entries stored without an explicit ttl
        clock: Monotonic time source (injectable for tests)
        name: Label used in log lines
    """

    def __init__(self, default_ttl: float, clock: Optional[Clock] = None, name: str = "cache"):
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[K, CacheEntry[V]] = {}
        self.name = name

    def get(self, key: K) -> Optional[V]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if not entry.is_fresh(self._clock()):
            logger.debug("%s: entry %r expired", self.name, key)
            del self._entries[key]
            return None

        return entry.value

    def peek(self, key: K) -> Optional[V]:
        """Value if fresh. Expired entries stay in place for pop_expired()."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry.value

    def set(self, key: K, value: V, ttl: Optional[float] = None) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds. If not provided, uses default.
        """
        self._entries[key] = CacheEntry(
            value=value,
            inserted_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

    def delete(self, key: K) -> bool:
        """Delete key from cache. Returns True if the key was present."""
        return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: Tuple[Any, ...]) -> int:
        """
        Delete all tuple keys starting with prefix.

        Args:
            prefix: Leading key components (e.g., ("applications",))

        Returns:
            Number of keys deleted
        """
        size = len(prefix)
        doomed = [
            key for key in self._entries
            if isinstance(key, tuple) and key[:size] == prefix
        ]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("%s: invalidated %d entries under %r", self.name, len(doomed), prefix)
        return len(doomed)

    def pop_expired(self) -> List[Tuple[K, V]]:
        """
        Remove and return every expired entry.

        For owners that must release resources held by expired values;
        plain readers rely on lazy expiry in get().
        """
        now = self._clock()
        expired = [(key, entry.value) for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key, _ in expired:
            del self._entries[key]
        return expired

    def drain(self) -> List[Tuple[K, V]]:
        """Remove and return every entry, fresh or expired."""
        drained = [(key, entry.value) for key, entry in self._entries.items()]
        self._entries.clear()
        return drained

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def keys(self) -> Iterator[K]:
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)


class ProfileCache(TTLCache[str, Any]):
    """
    Profile memoization keyed by user id.

    Each key is timestamped independently; clear() is called on every
    logout so profiles never leak across sessions.
    """

    def __init__(self, ttl: float = 300, clock: Optional[Clock] = None):
        super().__init__(default_ttl=ttl, clock=clock, name="profile-cache")

    def put(self, user_id: str, profile: Any) -> None:
        self.set(user_id, profile)

    def handle_identity_changed(self, event: Any) -> None:
        """EventBus handler: forget every profile once the session signs out."""
        if event.user_id is None:
            self.clear()

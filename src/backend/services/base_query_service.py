"""
Shared plumbing for the entity query services.

Holds the per-session query cache, the retry policy for reads and the
notification queue, so the service and application layers only express
their own queries and rules.
"""
import logging
from typing import Any, List, Optional, Tuple, Union

from core.async_utils import retry_on_transport
from core.cache import TTLCache
from core.config import CacheSettings, QuerySettings
from core.exceptions import RemoteError, TransportError
from repositories.data_source import DataSource, Row, TableQuery
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

QueryCache = TTLCache[Tuple[Any, ...], Tuple[Any, ...]]


def remote_message(exc: Union[RemoteError, TransportError]) -> str:
    """Human-readable reason carried by a data source failure."""
    if isinstance(exc, RemoteError):
        return exc.message
    return str(exc) or "Unable to reach the server"


def remote_code(exc: Union[RemoteError, TransportError]) -> Optional[str]:
    return exc.code if isinstance(exc, RemoteError) else None


class BaseQueryService:
    """Base class for cached, retried reads against a data source."""

    # First component of every cache key this service owns
    cache_namespace: str = ""

    def __init__(
        self,
        data_source: DataSource,
        cache: QueryCache,
        notifier: NotificationService,
        cache_settings: Optional[CacheSettings] = None,
        query_settings: Optional[QuerySettings] = None,
    ):
        self._source = data_source
        self._cache = cache
        self._notifier = notifier
        self._cache_settings = cache_settings or CacheSettings()
        self._query = query_settings or QuerySettings()
        # Bumped by invalidate(); listings read under an older value are not cached
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def _read(self, query: TableQuery, operation: str) -> List[Row]:
        """Select with retries on transport failure."""
        return await retry_on_transport(
            lambda: self._source.select(query),
            attempts=self._query.retry_attempts,
            base_delay=self._query.retry_base_delay,
            max_delay=self._query.retry_max_delay,
            operation=operation,
        )

    def _cached(self, key: Tuple[Any, ...]) -> Optional[List[Any]]:
        hit = self._cache.get(key)
        if hit is None:
            return None
        logger.debug(f"Query cache hit for {key}")
        return list(hit)

    def _store_listing(self, key: Tuple[Any, ...], items: List[Any], ttl: float, generation: int) -> bool:
        """
        Cache a listing unless the namespace was invalidated while it was read.

        Returns:
            True if the listing was cached
        """
        if generation != self._generation:
            logger.info(f"Not caching {key}: invalidated during fetch")
            return False
        self._cache.set(key, tuple(items), ttl=ttl)
        return True

    def invalidate(self) -> int:
        """Drop every cached listing in this service's namespace."""
        self._generation += 1
        return self._cache.delete_prefix((self.cache_namespace,))

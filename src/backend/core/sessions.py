"""Portal sessions.

A PortalSession is everything one browser client owns: a data source, an
event bus, the session store, caches, the query layer and a notification
queue. Access guards are built per request against its store. The
SessionRegistry keys sessions by an opaque cookie value and drops them
after an idle period.
"""

import logging
import uuid
from typing import Callable, Optional

import httpx

from core.cache import ProfileCache, TTLCache
from core.config import Settings
from core.events import EventBus, EventType, IdentityChanged, ProfileLoaded
from core.factory import build_data_source
from core.guards import AccessGuard
from core.logging_config import SessionLogger
from models.model_enum import DataSourceMode
from repositories.data_source import DataSource
from services.application_service import ApplicationService
from services.notification_service import NotificationService
from services.service_catalog_service import ServiceCatalogService
from services.session_store import SessionStore

logger = logging.getLogger(__name__)
session_logger = SessionLogger()


def generate_portal_id() -> str:
    """Opaque portal session identifier for the session cookie."""
    return str(uuid.uuid4())


class PortalSession:
    """Per-client bundle of the portal core."""

    def __init__(
        self,
        portal_id: str,
        data_source: DataSource,
        settings: Settings,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.id = portal_id
        self.data_source = data_source
        self.settings = settings

        self.bus = EventBus()
        self.notifier = NotificationService()
        self.profile_cache = ProfileCache(ttl=settings.cache.profile_ttl, clock=clock)
        self.query_cache = TTLCache(
            default_ttl=settings.cache.applications_stale,
            clock=clock,
            name=f"query-cache:{portal_id[:8]}",
        )

        self.store = SessionStore(
            data_source,
            self.bus,
            self.profile_cache,
            self.notifier,
            settings.query,
        )
        self.services = ServiceCatalogService(
            data_source,
            self.query_cache,
            self.notifier,
            settings.cache,
            settings.query,
        )
        self.applications = ApplicationService(
            data_source,
            self.store,
            self.bus,
            self.query_cache,
            self.notifier,
            settings.cache,
            settings.query,
        )

        self.bus.subscribe(EventType.IDENTITY_CHANGED, self.profile_cache.handle_identity_changed)
        self.bus.subscribe(EventType.IDENTITY_CHANGED, self._log_identity)
        self.bus.subscribe(EventType.PROFILE_LOADED, self._log_identity)

    @property
    def mode(self) -> DataSourceMode:
        return self.data_source.mode

    def guard_for(self, path: str, require_auth: bool = True) -> AccessGuard:
        """One-off guard evaluated against this session's store."""
        return AccessGuard(
            self.store,
            require_auth=require_auth,
            redirect_to=self.settings.api.login_path,
            dashboard_path=self.settings.api.dashboard_path,
            path=path,
        )

    def _log_identity(self, event) -> None:
        if isinstance(event, IdentityChanged) and event.user_id is not None:
            # Role is logged once the profile arrives
            return
        role = event.role.value if isinstance(event, ProfileLoaded) and event.role else None
        session_logger.identity_changed(self.id, event.user_id, role)

    async def start(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        self.applications.close()
        self.store.close()
        await self.data_source.aclose()


class SessionRegistry:
    """
    Portal sessions keyed by cookie value, expiring after idle time.

    Args:
        settings: Application settings
        http_client: Shared client for remote data sources (None when unconfigured)
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._settings = settings
        self._http_client = http_client
        self._clock = clock
        self._sessions: TTLCache[str, PortalSession] = TTLCache(
            default_ttl=settings.cache.session_idle,
            clock=clock,
            name="portal-sessions",
        )

    async def get_or_create(self, portal_id: Optional[str] = None) -> PortalSession:
        """
        Return the live session for portal_id, or start a new one.

        Every access restarts the idle timer.
        """
        await self.sweep()

        if portal_id:
            portal = self._sessions.peek(portal_id)
            if portal is not None:
                self._sessions.set(portal_id, portal)
                return portal

        portal = PortalSession(
            generate_portal_id(),
            build_data_source(self._settings, self._http_client),
            self._settings,
            clock=self._clock,
        )
        await portal.start()
        self._sessions.set(portal.id, portal)
        session_logger.session_created(portal.id, portal.mode.value)
        return portal

    def get(self, portal_id: str) -> Optional[PortalSession]:
        return self._sessions.peek(portal_id)

    async def sweep(self) -> int:
        """Close idle sessions. Returns how many were dropped."""
        expired = self._sessions.pop_expired()
        for portal_id, portal in expired:
            try:
                await portal.close()
            except Exception as e:
                session_logger.error_occurred("close", portal_id, str(e))
            session_logger.session_expired(portal_id)
        return len(expired)

    async def close_all(self) -> None:
        for portal_id, portal in self._sessions.drain():
            try:
                await portal.close()
            except Exception as e:
                session_logger.error_occurred("close", portal_id, str(e))
        logger.info("All portal sessions closed")

    def __len__(self) -> int:
        return len(self._sessions)

"""
Pytest configuration and fixtures for testing.

Provides:
- Settings with retries that never sleep
- A fake monotonic clock for cache expiry
- Synthetic data source, session store and full portal sessions
- An ASGI client for the HTTP edge

Usage:
    pytest src/backend/tests -v
"""

from typing import AsyncGenerator, Awaitable, Callable

import httpx
import pytest
import pytest_asyncio

from core.cache import ProfileCache, TTLCache
from core.config import (APISettings, CacheSettings, QuerySettings, Settings,
                         SupabaseSettings)
from core.events import EventBus
from core.sessions import PortalSession, SessionRegistry
from repositories.synthetic_data_source import SyntheticDataSource
from schemas.profile import Profile
from services.notification_service import NotificationService
from services.session_store import SessionStore
from tests.factories import ProfileFactory


# ============================================================================
# Time and Settings
# ============================================================================

class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Unconfigured backend, default cache windows, zero retry delay."""
    return Settings(
        api=APISettings(),
        supabase=SupabaseSettings(url="", anon_key=""),
        cache=CacheSettings(),
        query=QuerySettings(retry_base_delay=0, retry_max_delay=0),
    )


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def synthetic_source() -> SyntheticDataSource:
    return SyntheticDataSource()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def notifier() -> NotificationService:
    return NotificationService()


@pytest.fixture
def profile_cache(fake_clock) -> ProfileCache:
    return ProfileCache(ttl=300, clock=fake_clock)


@pytest.fixture
def query_cache(fake_clock) -> TTLCache:
    return TTLCache(default_ttl=300, clock=fake_clock, name="test-query-cache")


@pytest_asyncio.fixture
async def store(synthetic_source, bus, profile_cache, notifier, test_settings) -> SessionStore:
    """Initialized session store over synthetic data."""
    session_store = SessionStore(synthetic_source, bus, profile_cache, notifier, test_settings.query)
    await session_store.initialize()
    return session_store


@pytest_asyncio.fixture
async def portal(synthetic_source, test_settings, fake_clock) -> AsyncGenerator[PortalSession, None]:
    """Started portal session over synthetic data."""
    portal_session = PortalSession("test-portal", synthetic_source, test_settings, clock=fake_clock)
    await portal_session.start()
    yield portal_session
    await portal_session.close()


@pytest.fixture
def sign_in_as(portal) -> Callable[[Profile], Awaitable[Profile]]:
    """Sign the portal in as a seeded profile (not the stand-in identity)."""

    async def _sign_in(profile: Profile) -> Profile:
        portal.data_source.seed("profiles", [profile.to_row()])
        await portal.data_source.sign_in_as(ProfileFactory.auth_user(profile))
        return portal.store.profile

    return _sign_in


# ============================================================================
# HTTP Edge
# ============================================================================

@pytest_asyncio.fixture
async def api_client(test_settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """ASGI client with a fresh session registry; cookies persist across calls."""
    from app import create_app

    app = create_app()
    app.state.http_client = None
    app.state.session_registry = SessionRegistry(test_settings, None)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    await app.state.session_registry.close_all()

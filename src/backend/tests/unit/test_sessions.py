"""
Unit tests for portal sessions and the session registry.
"""

import pytest

from core.sessions import SessionRegistry
from models.model_enum import DataSourceMode, GuardAction
from tests.factories import ProfileFactory


class TestPortalSession:
    """Wiring inside one portal session."""

    @pytest.mark.asyncio
    async def test_unconfigured_backend_uses_synthetic_data(self, portal):
        assert portal.mode == DataSourceMode.SYNTHETIC
        assert portal.store.data_source_mode == DataSourceMode.SYNTHETIC

    @pytest.mark.asyncio
    async def test_sign_out_clears_profile_cache(self, portal, sign_in_as):
        profile = await sign_in_as(ProfileFactory.create())
        assert portal.profile_cache.get(profile.id) is not None

        await portal.data_source.sign_out()

        assert len(portal.profile_cache) == 0
        assert portal.store.profile is None

    @pytest.mark.asyncio
    async def test_guards_evaluate_current_session(self, portal):
        assert portal.guard_for("/dashboard").should_render is False

        await portal.store.login("demo@village.example", "x")
        assert portal.guard_for("/dashboard").should_render is True
        assert portal.guard_for("/login", require_auth=False).evaluate().action == GuardAction.REDIRECT

    @pytest.mark.asyncio
    async def test_close_detaches_listeners(self, portal):
        await portal.close()

        await portal.data_source.sign_in_as(ProfileFactory.auth_user(ProfileFactory.create()))

        assert portal.store.user is None


class TestSessionRegistry:
    """Cookie-keyed sessions with idle expiry."""

    @pytest.mark.asyncio
    async def test_new_session_started(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)

        portal = await registry.get_or_create(None)

        assert len(registry) == 1
        assert portal.store.is_loading is False
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_known_id_reused(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)
        portal = await registry.get_or_create(None)

        assert await registry.get_or_create(portal.id) is portal
        assert len(registry) == 1
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_unknown_id_gets_fresh_session(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)

        portal = await registry.get_or_create("forged-cookie")

        assert portal.id != "forged-cookie"
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_idle_sessions_expire(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)
        idle = await registry.get_or_create(None)
        fake_clock.advance(test_settings.cache.session_idle - 1)
        active = await registry.get_or_create(None)
        fake_clock.advance(1)

        assert await registry.sweep() == 1
        assert registry.get(idle.id) is None
        assert registry.get(active.id) is active
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_access_restarts_idle_timer(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)
        portal = await registry.get_or_create(None)

        fake_clock.advance(test_settings.cache.session_idle - 1)
        await registry.get_or_create(portal.id)
        fake_clock.advance(test_settings.cache.session_idle - 1)

        assert await registry.get_or_create(portal.id) is portal
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_expired_session_hidden_until_swept(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)
        portal = await registry.get_or_create(None)
        fake_clock.advance(test_settings.cache.session_idle)

        assert registry.get(portal.id) is None
        assert len(registry) == 1
        assert await registry.sweep() == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_close_all_closes_expired_sessions(self, test_settings, fake_clock):
        registry = SessionRegistry(test_settings, clock=fake_clock)
        portal = await registry.get_or_create(None)
        fake_clock.advance(test_settings.cache.session_idle)

        await registry.close_all()
        await portal.data_source.sign_in_as(ProfileFactory.auth_user(ProfileFactory.create()))

        assert len(registry) == 0
        assert portal.store.user is None

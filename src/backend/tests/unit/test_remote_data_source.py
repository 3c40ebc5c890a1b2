"""
Unit tests for the Supabase-backed data source.

Requests are answered by httpx.MockTransport; nothing leaves the process.
"""

import json

import httpx
import pytest

from core.config import SupabaseSettings
from core.exceptions import RemoteError, TransportError
from models.model_enum import AuthEvent, UserRole
from repositories.data_source import Embed, OrFilter, TableQuery
from repositories.remote_data_source import (RemoteDataSource,
                                             build_query_params, encode_or)
from services.application_service import build_list_query
from tests.factories import ApplicationFactory, ProfileFactory

SUPABASE = SupabaseSettings(url="https://example.supabase.co", anon_key="anon-key")

TOKEN_BODY = {
    "access_token": "user-jwt",
    "refresh_token": "refresh",
    "token_type": "bearer",
    "expires_in": 3600,
    "user": {"id": "u1", "email": "asha@village.example", "user_metadata": {"full_name": "Asha Patil"}},
}


class Backend:
    """Records requests and answers them from a route table."""

    def __init__(self, routes=None, raise_error=None):
        self.routes = routes or {}
        self.raise_error = raise_error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error(request)
        return self.routes.get((request.method, request.url.path), httpx.Response(200, json=[]))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _source(backend: Backend) -> RemoteDataSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return RemoteDataSource(client, SUPABASE)


class TestQueryEncoding:
    """TableQuery to PostgREST parameters."""

    def test_staff_listing_params(self):
        staff = ProfileFactory.create(id="s1", role=UserRole.STAFF)
        params = dict(build_query_params(build_list_query(staff, limit=25)))

        assert params["or"] == "(assigned_to.eq.s1,assigned_to.is.null)"
        assert params["order"] == "submitted_at.desc"
        assert params["limit"] == "25"
        assert params["select"].endswith(
            "service:services(name,category,fees,processing_time),"
            "citizen:profiles!applications_citizen_id_fkey(full_name,email,phone)"
        )

    def test_eq_filters(self):
        query = TableQuery(table="services", eq={"is_active": True, "category": "licenses"}, order_by="name")

        assert build_query_params(query) == [
            ("select", "*"),
            ("is_active", "eq.true"),
            ("category", "eq.licenses"),
            ("order", "name.asc"),
        ]

    def test_or_with_null(self):
        assert encode_or(OrFilter(clauses=(("assigned_to", None),))) == "(assigned_to.is.null)"

    def test_embed_without_hint(self):
        query = TableQuery(
            table="applications",
            columns=("id",),
            embeds=(Embed(alias="service", table="services", local_key="service_id", columns=("name",)),),
        )
        assert build_query_params(query)[0] == ("select", "id,service:services(name)")


class TestTables:
    """Table reads and writes."""

    @pytest.mark.asyncio
    async def test_select_with_anon_key(self):
        row = ApplicationFactory.row(citizen_id="u1", id="a1")
        backend = Backend({("GET", "/rest/v1/applications"): httpx.Response(200, json=[row])})

        rows = await _source(backend).select(TableQuery(table="applications", eq={"citizen_id": "u1"}))

        assert rows == [row]
        request = backend.last
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer anon-key"
        assert request.url.params["citizen_id"] == "eq.u1"

    @pytest.mark.asyncio
    async def test_insert_asks_for_representation(self):
        created = {"id": "a1", "status": "pending"}
        backend = Backend({("POST", "/rest/v1/applications"): httpx.Response(201, json=[created])})

        rows = await _source(backend).insert("applications", [{"status": "pending"}])

        assert rows == [created]
        assert backend.last.headers["prefer"] == "return=representation"
        assert json.loads(backend.last.content) == [{"status": "pending"}]

    @pytest.mark.asyncio
    async def test_update_matches_by_params(self):
        backend = Backend({("PATCH", "/rest/v1/applications"): httpx.Response(200, json=[])})

        rows = await _source(backend).update("applications", {"status": "approved"}, {"id": "a1"})

        assert rows == []
        assert backend.last.url.params["id"] == "eq.a1"
        assert json.loads(backend.last.content) == {"status": "approved"}

    @pytest.mark.asyncio
    async def test_postgrest_error_mapped(self):
        backend = Backend({
            ("GET", "/rest/v1/profiles"): httpx.Response(500, json={
                "code": "42P17",
                "message": 'infinite recursion detected in policy for relation "profiles"',
                "details": None,
                "hint": None,
            })
        })

        with pytest.raises(RemoteError) as exc_info:
            await _source(backend).select(TableQuery(table="profiles"))

        error = exc_info.value
        assert error.code == "42P17"
        assert error.status_code == 500
        assert error.message.startswith("infinite recursion")

    @pytest.mark.asyncio
    async def test_plain_text_error(self):
        backend = Backend({("GET", "/rest/v1/services"): httpx.Response(503, text="upstream unavailable")})

        with pytest.raises(RemoteError, match="upstream unavailable"):
            await _source(backend).select(TableQuery(table="services"))

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self):
        backend = Backend(raise_error=lambda request: httpx.ConnectError("connection refused", request=request))

        with pytest.raises(TransportError, match="ConnectError"):
            await _source(backend).select(TableQuery(table="services"))


class TestAuth:
    """GoTrue sign-in, sign-up and sign-out."""

    @pytest.mark.asyncio
    async def test_sign_in_uses_user_token_afterwards(self):
        backend = Backend({("POST", "/auth/v1/token"): httpx.Response(200, json=TOKEN_BODY)})
        source = _source(backend)
        events = []

        async def listener(event, session):
            events.append((event, session.user.id if session else None))

        source.on_auth_state_change(listener)
        session = await source.sign_in_with_password("asha@village.example", "secret")

        assert session.user.id == "u1"
        assert backend.last.url.params["grant_type"] == "password"
        assert events == [(AuthEvent.SIGNED_IN, "u1")]

        await source.select(TableQuery(table="services"))
        assert backend.last.headers["authorization"] == "Bearer user-jwt"

    @pytest.mark.asyncio
    async def test_rejected_credentials(self):
        backend = Backend({
            ("POST", "/auth/v1/token"): httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
            )
        })
        source = _source(backend)

        with pytest.raises(RemoteError) as exc_info:
            await source.sign_in_with_password("asha@village.example", "wrong")

        assert exc_info.value.message == "Invalid login credentials"
        assert exc_info.value.code == "invalid_grant"
        assert await source.get_session() is None

    @pytest.mark.asyncio
    async def test_sign_up_pending_confirmation(self):
        backend = Backend({
            ("POST", "/auth/v1/signup"): httpx.Response(200, json={"id": "u2", "email": "ravi@village.example"})
        })

        session = await _source(backend).sign_up("ravi@village.example", "secret1", {"full_name": "Ravi Kumar"})

        assert session is None
        assert json.loads(backend.last.content)["data"] == {"full_name": "Ravi Kumar"}

    @pytest.mark.asyncio
    async def test_sign_out_failure_still_clears_session(self):
        backend = Backend({
            ("POST", "/auth/v1/token"): httpx.Response(200, json=TOKEN_BODY),
            ("POST", "/auth/v1/logout"): httpx.Response(500, json={"msg": "internal error"}),
        })
        source = _source(backend)
        events = []

        async def listener(event, session):
            events.append(event)

        source.on_auth_state_change(listener)
        await source.sign_in_with_password("asha@village.example", "secret")

        with pytest.raises(RemoteError, match="internal error"):
            await source.sign_out()

        assert await source.get_session() is None
        assert events == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]

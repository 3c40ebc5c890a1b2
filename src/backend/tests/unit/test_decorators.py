"""
Unit tests for remote error handling decorators.
"""

import pytest

from core.decorators import (RemoteErrorHandler, critical_remote_operation,
                             safe_remote_query)
from core.exceptions import RemoteError, TransportError


class TestRemoteErrorHandler:
    """Classification of remote failures."""

    def test_transport_error_is_recoverable(self):
        recoverable, message = RemoteErrorHandler.handle_remote_error(TransportError("refused"), "profile fetch")

        assert recoverable is True
        assert "profile fetch" in message

    def test_remote_error_includes_code_and_hint(self):
        error = RemoteError("permission denied", code="42501", hint="Check the row policy")

        recoverable, message = RemoteErrorHandler.handle_remote_error(error, "update", {"id": "a1"})

        assert recoverable is False
        assert "Code: 42501" in message
        assert "Hint: Check the row policy" in message

    @pytest.mark.parametrize("error,expected", [
        (RemoteError("boom", code="42P17"), True),
        (RemoteError('infinite recursion detected in policy for relation "profiles"'), True),
        (RemoteError("permission denied", code="42501"), False),
        (TransportError("infinite recursion"), False),
    ])
    def test_policy_recursion_detection(self, error, expected):
        assert RemoteErrorHandler.is_policy_recursion(error) is expected


class TestSafeRemoteQuery:
    """Reads that fall back to a default."""

    @pytest.mark.asyncio
    async def test_returns_fresh_default_on_remote_failure(self):
        @safe_remote_query("listing", default_return=[])
        async def listing():
            raise RemoteError("JWT expired", code="PGRST301")

        first = await listing()
        first.append("mutated")

        assert await listing() == []

    @pytest.mark.asyncio
    async def test_bare_decorator(self):
        @safe_remote_query
        async def revoke():
            raise TransportError("timed out")

        assert await revoke() is None

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self):
        @safe_remote_query("listing")
        async def listing():
            raise KeyError("id")

        with pytest.raises(KeyError):
            await listing()

    def test_sync_function_rejected(self):
        with pytest.raises(TypeError):
            @safe_remote_query
            def listing():
                return []


class TestCriticalRemoteOperation:
    """Writes always propagate remote failures."""

    @pytest.mark.asyncio
    async def test_reraises(self):
        @critical_remote_operation("insert")
        async def insert():
            raise RemoteError("duplicate key", code="23505")

        with pytest.raises(RemoteError, match="duplicate key"):
            await insert()

    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        @critical_remote_operation
        async def insert(rows):
            return rows

        assert await insert([{"id": "a1"}]) == [{"id": "a1"}]

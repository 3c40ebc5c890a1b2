"""
Test doubles for the data source boundary.

RemoteStubSource behaves like the remote backend (mode REMOTE) but keeps its
tables in memory and can be told to fail specific operations.
"""

import asyncio
from typing import Any, Dict, List, Optional

from core.exceptions import RemoteError, TransportError
from models.model_enum import DataSourceMode
from repositories.data_source import Row, TableQuery
from repositories.synthetic_data_source import SyntheticDataSource
from schemas.auth import AuthSession, AuthUser


class SelectGate:
    """Pair of events holding one select between reading and returning."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()


class RemoteStubSource(SyntheticDataSource):
    """
    In-memory stand-in for the hosted backend.

    Args:
        select_errors: table -> exception raised by select on that table
        update_errors: row id -> exception raised by update matching that id
        insert_error: exception raised by every insert
        sign_in_error / sign_up_error / sign_out_error: auth failures
    """

    mode = DataSourceMode.REMOTE

    def __init__(
        self,
        select_errors: Optional[Dict[str, Exception]] = None,
        update_errors: Optional[Dict[str, Exception]] = None,
        insert_error: Optional[Exception] = None,
        sign_in_error: Optional[Exception] = None,
        sign_up_error: Optional[Exception] = None,
        sign_out_error: Optional[Exception] = None,
    ):
        super().__init__()
        self.select_errors = select_errors or {}
        self.update_errors = update_errors or {}
        self.insert_error = insert_error
        self.sign_in_error = sign_in_error
        self.sign_up_error = sign_up_error
        self.sign_out_error = sign_out_error
        self.selects: List[TableQuery] = []
        self.updates: List[Dict[str, Any]] = []
        self.inserts: List[Row] = []
        self.sign_out_calls = 0
        self.select_gates: Dict[str, SelectGate] = {}

    def selects_on(self, table: str) -> int:
        return sum(1 for query in self.selects if query.table == table)

    def hold_next_select(self, table: str) -> SelectGate:
        """Make the next select on table pause after reading until released."""
        gate = SelectGate()
        self.select_gates[table] = gate
        return gate

    async def select(self, query: TableQuery) -> List[Row]:
        self.selects.append(query)
        if query.table in self.select_errors:
            raise self.select_errors[query.table]
        rows = await super().select(query)
        gate = self.select_gates.pop(query.table, None)
        if gate is not None:
            gate.entered.set()
            await gate.release.wait()
        return rows

    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        self.inserts.extend(rows)
        if self.insert_error is not None:
            raise self.insert_error
        return await super().insert(table, rows)

    async def update(self, table: str, values: Row, match: Dict[str, Any]) -> List[Row]:
        self.updates.append({"table": table, "values": values, "match": match})
        error = self.update_errors.get(match.get("id"))
        if error is not None:
            raise error
        return await super().update(table, values, match)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        profile = next((row for row in self._tables["profiles"] if row["email"] == email), None)
        if profile is None:
            raise RemoteError("Invalid login credentials", code="invalid_credentials", status_code=400)
        return await self.sign_in_as(AuthUser(id=profile["id"], email=email))

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        if self.sign_up_error is not None:
            raise self.sign_up_error
        # Email confirmation pending
        return None

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            self._session = None
            raise self.sign_out_error
        await super().sign_out()


def unreachable(message: str = "connection refused") -> TransportError:
    return TransportError(f"POST https://example.supabase.co failed: ConnectError: {message}")

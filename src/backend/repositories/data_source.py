"""
Data source abstraction.

A data source is the only seam between the portal core and persistence:
table-style select/insert/update plus an auth surface. Two implementations
exist (remote hosted backend, in-process synthetic data); which one backs a
portal session is decided once when the session is built.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from models.model_enum import AuthEvent, DataSourceMode
from schemas.auth import AuthSession

Row = Dict[str, Any]
AuthListener = Callable[[AuthEvent, Optional[AuthSession]], Awaitable[None]]

# Stand-in identity used whenever the remote auth surface is unavailable
STAND_IN_USER_ID = "demo-user-id"


@dataclass(frozen=True)
class Embed:
    """
    Denormalised join attached to every selected row.

    Attributes:
        alias: Key the joined object is stored under on the row
        table: Joined table
        local_key: Column on the selected row referencing the joined id
        columns: Columns to keep from the joined row
        hint: Foreign-key name disambiguating the join, if needed
    """

    alias: str
    table: str
    local_key: str
    columns: Tuple[str, ...]
    hint: Optional[str] = None


@dataclass(frozen=True)
class OrFilter:
    """Disjunction of equality and null checks over columns.

    Each clause is (column, value); a value of None means "is null".
    """

    clauses: Tuple[Tuple[str, Optional[Any]], ...]


@dataclass(frozen=True)
class TableQuery:
    """A select against one table."""

    table: str
    columns: Tuple[str, ...] = ("*",)
    eq: Dict[str, Any] = field(default_factory=dict)
    or_: Optional[OrFilter] = None
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None
    embeds: Tuple[Embed, ...] = ()


class DataSource(ABC):
    """Table and auth operations used by the portal core."""

    mode: DataSourceMode

    @property
    def is_configured(self) -> bool:
        return self.mode == DataSourceMode.REMOTE

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    @abstractmethod
    async def select(self, query: TableQuery) -> List[Row]:
        """Return rows matching query."""

    @abstractmethod
    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        """Insert rows and return them as stored."""

    @abstractmethod
    async def update(self, table: str, values: Row, match: Dict[str, Any]) -> List[Row]:
        """Update rows whose columns equal match; return the updated rows."""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        """Register a user. Returns None when email confirmation is pending."""

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        ...

    @abstractmethod
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register listener for auth notifications. Returns an unsubscribe callable."""

    async def aclose(self) -> None:
        """Release per-source resources. The shared HTTP client is not owned here."""


class AuthNotifier:
    """Listener bookkeeping shared by both data sources."""

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def add(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            await listener(event, session)

    def __len__(self) -> int:
        return len(self._listeners)

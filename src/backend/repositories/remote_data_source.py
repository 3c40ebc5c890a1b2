"""
Remote data source backed by a hosted Supabase project.

Tables go through PostgREST (/rest/v1), auth through GoTrue (/auth/v1).
The httpx.AsyncClient is shared by every portal session in the process and
is owned by the application lifespan; each RemoteDataSource only holds the
tokens of the session it serves.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from core.config import SupabaseSettings
from core.decorators import critical_remote_operation
from core.exceptions import RemoteError, TransportError
from models.model_enum import AuthEvent, DataSourceMode
from repositories.data_source import (AuthListener, AuthNotifier, DataSource,
                                      Embed, OrFilter, Row, TableQuery)
from schemas.auth import AuthSession

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> str:
    """Render a Python value as a PostgREST filter operand."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def encode_embed(embed: Embed) -> str:
    """
    Render an embedded relation for the select parameter.

    Example:
        >>> encode_embed(Embed("citizen", "profiles", "citizen_id", ("full_name",), "applications_citizen_id_fkey"))
        'citizen:profiles!applications_citizen_id_fkey(full_name)'
    """
    target = f"{embed.table}!{embed.hint}" if embed.hint else embed.table
    return f"{embed.alias}:{target}({','.join(embed.columns)})"


def encode_or(or_filter: OrFilter) -> str:
    parts = []
    for column, value in or_filter.clauses:
        if value is None:
            parts.append(f"{column}.is.null")
        else:
            parts.append(f"{column}.eq.{encode_value(value)}")
    return f"({','.join(parts)})"


def build_query_params(query: TableQuery) -> List[Tuple[str, str]]:
    """
    Translate a TableQuery into PostgREST query-string parameters.

    Returns:
        Ordered (name, value) pairs
    """
    select = list(query.columns) + [encode_embed(e) for e in query.embeds]
    params: List[Tuple[str, str]] = [("select", ",".join(select))]

    params.extend(match_params(query.eq))

    if query.or_ is not None:
        params.append(("or", encode_or(query.or_)))

    if query.order_by:
        direction = "desc" if query.descending else "asc"
        params.append(("order", f"{query.order_by}.{direction}"))

    if query.limit is not None:
        params.append(("limit", str(query.limit)))

    return params


def match_params(match: Dict[str, Any]) -> List[Tuple[str, str]]:
    params = []
    for column, value in match.items():
        if value is None:
            params.append((column, "is.null"))
        else:
            params.append((column, f"eq.{encode_value(value)}"))
    return params


def _error_from_response(response: httpx.Response) -> RemoteError:
    """Build a RemoteError from a PostgREST or GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        text = response.text.strip() or response.reason_phrase
        return RemoteError(text, status_code=response.status_code)

    # PostgREST: {code, message, details, hint}
    # GoTrue: {error, error_description} or {code, msg} or {error_code, message}
    message = (
        body.get("message")
        or body.get("error_description")
        or body.get("msg")
        or body.get("error")
        or response.reason_phrase
    )
    code = body.get("code") or body.get("error_code") or body.get("error")
    return RemoteError(
        str(message),
        code=str(code) if code is not None else None,
        details=body.get("details"),
        hint=body.get("hint"),
        status_code=response.status_code,
    )


class RemoteDataSource(DataSource):
    """PostgREST/GoTrue client for one portal session."""

    mode = DataSourceMode.REMOTE

    def __init__(self, http_client: httpx.AsyncClient, config: SupabaseSettings):
        self._http = http_client
        self._config = config
        self._session: Optional[AuthSession] = None
        self._listeners = AuthNotifier()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        token = self._session.access_token if self._session else self._config.anon_key
        headers = {
            "apikey": self._config.anon_key,
            "Authorization": f"Bearer {token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Issue a request and decode the JSON body.

        Raises:
            TransportError: The backend could not be reached
            RemoteError: The backend answered with an error status
        """
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
        except httpx.TransportError as e:
            raise TransportError(f"{method} {url} failed: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise _error_from_response(response)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _table_url(self, table: str) -> str:
        return f"{self._config.rest_url}/{table}"

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def select(self, query: TableQuery) -> List[Row]:
        rows = await self._request("GET", self._table_url(query.table), params=build_query_params(query))
        return rows or []

    @critical_remote_operation("table insert")
    async def insert(self, table: str, rows: List[Row]) -> List[Row]:
        created = await self._request(
            "POST",
            self._table_url(table),
            json=rows,
            prefer="return=representation",
        )
        return created or []

    @critical_remote_operation("table update")
    async def update(self, table: str, values: Row, match: Dict[str, Any]) -> List[Row]:
        updated = await self._request(
            "PATCH",
            self._table_url(table),
            params=match_params(match),
            json=values,
            prefer="return=representation",
        )
        return updated or []

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        body = await self._request(
            "POST",
            f"{self._config.auth_url}/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
        )
        self._session = AuthSession.model_validate(body)
        logger.info(f"Signed in user {self._session.user.id}")
        await self._listeners.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[AuthSession]:
        body = await self._request(
            "POST",
            f"{self._config.auth_url}/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        # Without auto-confirm GoTrue answers with the bare user object
        if not body or "access_token" not in body:
            logger.info(f"Sign-up for {email} awaiting email confirmation")
            return None

        self._session = AuthSession.model_validate(body)
        await self._listeners.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_out(self) -> None:
        """Revoke the session remotely; local tokens are dropped even if that fails."""
        if self._session is None:
            return
        try:
            await self._request("POST", f"{self._config.auth_url}/logout")
        finally:
            self._session = None
            await self._listeners.emit(AuthEvent.SIGNED_OUT, None)

    async def get_session(self) -> Optional[AuthSession]:
        return self._session

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        return self._listeners.add(listener)

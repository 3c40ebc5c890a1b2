"""
Session/Profile Store.

Single source of truth for the current session, user and profile of one
portal session. Reacts to auth notifications from the data source, fetches
the profile for every new identity, and publishes typed events on the
session's EventBus instead of calling its dependents directly.

State machine:
    UNINITIALIZED -> LOADING -> AUTHENTICATED | ANONYMOUS
    login/register move through LOADING again.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from core.async_utils import retry_on_transport
from core.cache import ProfileCache
from core.config import QuerySettings
from core.decorators import RemoteErrorHandler, safe_remote_query
from core.events import (EventBus, IdentityChanged, ProfileLoaded,
                         SessionStateChanged)
from core.exceptions import RemoteError, TransportError
from core.schema_base import utc_now
from models.model_enum import AuthEvent, DataSourceMode, SessionState, UserRole
from repositories.data_source import DataSource, TableQuery
from repositories.synthetic_data_source import stand_in_session
from schemas.auth import AuthSession, AuthUser
from schemas.profile import Profile, ProfileUpdate
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = ("id", "full_name", "email", "phone", "address", "role", "created_at", "updated_at")


def profile_from_metadata(user: AuthUser) -> Profile:
    """
    Best-effort profile built from the auth user's metadata.

    Used when the profile row cannot be read and for stand-in sessions.
    An absent or unknown role falls back to citizen.
    """
    metadata: Dict[str, Any] = user.user_metadata or {}
    try:
        role = UserRole(metadata.get("role"))
    except ValueError:
        role = UserRole.CITIZEN

    email = user.email or metadata.get("email") or ""
    created = user.created_at or datetime.now(timezone.utc)
    return Profile(
        id=user.id,
        full_name=metadata.get("full_name") or (email.split("@")[0] if email else "User"),
        email=email,
        phone=metadata.get("phone"),
        address=metadata.get("address"),
        role=role,
        created_at=created,
        updated_at=created,
    )


class SessionStore:
    """
    Session, user and profile for one portal session.

    Args:
        data_source: Table and auth backend
        bus: Event bus dependents subscribe to
        profiles: Profile cache owned by the same portal session
        notifier: Notification queue
        query_settings: Retry policy for profile reads
    """

    def __init__(
        self,
        data_source: DataSource,
        bus: EventBus,
        profiles: ProfileCache,
        notifier: NotificationService,
        query_settings: Optional[QuerySettings] = None,
    ):
        self._source = data_source
        self._bus = bus
        self._profiles = profiles
        self._notifier = notifier
        self._query = query_settings or QuerySettings()

        self._state = SessionState.UNINITIALIZED
        self._session: Optional[AuthSession] = None
        self._profile: Optional[Profile] = None
        self._is_stand_in = False
        # Bumped on every identity change; profile fetches for an older
        # generation must not commit
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Reactive accessors
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def user(self) -> Optional[AuthUser]:
        return self._session.user if self._session else None

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state in (SessionState.UNINITIALIZED, SessionState.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def is_stand_in(self) -> bool:
        return self._is_stand_in

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def data_source_mode(self) -> DataSourceMode:
        return self._source.mode

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        logger.debug(f"Session state {self._state.value} -> {state.value}")
        self._state = state
        self._bus.publish(SessionStateChanged(state=state))

    def _settle_state(self) -> None:
        self._set_state(SessionState.AUTHENTICATED if self._session else SessionState.ANONYMOUS)

    def _switch_identity(self, session: Optional[AuthSession]) -> None:
        """Replace the session; bump the generation if the identity changed."""
        previous_id = self.user.id if self._session else None
        new_id = session.user.id if session else None
        self._session = session

        if previous_id == new_id:
            return

        self._generation += 1
        self._profile = None
        self._bus.publish(IdentityChanged(previous_user_id=previous_id, user_id=new_id))

    def _commit_profile(self, profile: Optional[Profile]) -> None:
        self._profile = profile
        if profile is not None:
            self._bus.publish(ProfileLoaded(user_id=profile.id, role=profile.role))

    def _clear(self) -> None:
        self._is_stand_in = False
        self._switch_identity(None)
        self._profile = None
        self._profiles.clear()
        self._set_state(SessionState.ANONYMOUS)

    # ------------------------------------------------------------------
    # Auth notifications
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Subscribe to auth notifications once, then hydrate the current session."""
        if self._unsubscribe is not None:
            return

        self._set_state(SessionState.LOADING)
        self._unsubscribe = self._source.on_auth_state_change(self.handle_auth_event)
        session = await self._source.get_session()
        await self.handle_auth_event(AuthEvent.INITIAL_SESSION, session)

    def close(self) -> None:
        """Stop listening to auth notifications."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        """
        React to an auth notification.

        A notification with a user loads that user's profile; one without
        a user clears every piece of session state.
        """
        logger.debug(f"Auth event {event.value} (user={session.user.id if session else None})")

        if session is None:
            if self._session is None and self._state == SessionState.ANONYMOUS:
                return
            self._clear()
            return

        await self._adopt(session)

    async def _adopt(self, session: AuthSession) -> None:
        self._is_stand_in = False
        self._switch_identity(session)
        generation = self._generation

        profile = await self.fetch_profile(session.user)

        if generation != self._generation:
            logger.info(f"Discarding profile for {session.user.id}: identity changed during fetch")
            return

        self._commit_profile(profile)
        self._set_state(SessionState.AUTHENTICATED)

    def _adopt_stand_in(self, email: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        session = stand_in_session(email, metadata)
        self._switch_identity(session)
        self._is_stand_in = True
        self._commit_profile(profile_from_metadata(session.user))
        self._set_state(SessionState.AUTHENTICATED)
        logger.info(f"Stand-in session started for {email}")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def fetch_profile(self, user: AuthUser) -> Optional[Profile]:
        """
        Load the profile for user, consulting the profile cache first.

        Returns:
            The profile, a metadata-derived profile when the access policy
            fails with recursion, or None when no row is readable
        """
        cached = self._profiles.get(user.id)
        if cached is not None:
            logger.debug(f"Profile cache hit for {user.id}")
            return cached

        query = TableQuery(table="profiles", columns=PROFILE_COLUMNS, eq={"id": user.id}, limit=1)
        try:
            rows = await retry_on_transport(
                lambda: self._source.select(query),
                attempts=self._query.retry_attempts,
                base_delay=self._query.retry_base_delay,
                max_delay=self._query.retry_max_delay,
                operation="profile fetch",
            )
        except (RemoteError, TransportError) as e:
            RemoteErrorHandler.handle_remote_error(e, "profile fetch", {"user_id": user.id})
            if RemoteErrorHandler.is_policy_recursion(e):
                logger.warning(f"Using metadata profile for {user.id} (access policy recursion)")
                return profile_from_metadata(user)
            return None

        if not rows:
            logger.info(f"No profile row for {user.id}")
            return None

        profile = Profile.model_validate(rows[0])
        self._profiles.put(user.id, profile)
        return profile

    async def update_profile(self, changes: ProfileUpdate) -> bool:
        """
        Update the signed-in user's profile.

        Returns:
            False without a session or when the remote update fails
        """
        if self._session is None:
            return False

        if self._is_stand_in or self._source.mode == DataSourceMode.SYNTHETIC:
            self._notifier.notify("Demo Mode", "Profile updates are not saved in demo mode")
            return True

        user_id = self._session.user.id
        values = changes.to_row(exclude_none=True)
        values["updated_at"] = utc_now().isoformat()

        try:
            rows = await self._source.update("profiles", values, {"id": user_id})
        except (RemoteError, TransportError) as e:
            RemoteErrorHandler.handle_remote_error(e, "profile update", {"user_id": user_id})
            self._notifier.error("Update Failed", e.message if isinstance(e, RemoteError) else str(e))
            return False

        if not rows:
            self._notifier.error("Update Failed", "Profile not found")
            return False

        profile = Profile.model_validate(rows[0])
        self._profiles.put(user_id, profile)
        self._commit_profile(profile)
        self._notifier.notify("Profile Updated", "Your profile has been updated successfully")
        return True

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> bool:
        """
        Sign in with email and password.

        Returns:
            True when signed in (possibly as the stand-in identity), False
            when the remote rejected the credentials
        """
        self._set_state(SessionState.LOADING)

        if self._source.mode == DataSourceMode.SYNTHETIC:
            self._adopt_stand_in(email)
            self._notifier.notify("Demo Mode", "Supabase not configured. Using demo authentication.")
            return True

        try:
            session = await self._source.sign_in_with_password(email, password)
        except TransportError as e:
            logger.warning(f"Login transport failure, using stand-in session: {e}")
            self._adopt_stand_in(email)
            self._notifier.notify("Demo Mode", "Using demo authentication due to connection issues.")
            return True
        except RemoteError as e:
            logger.info(f"Login rejected for {email}: {e.message}")
            self._settle_state()
            self._notifier.error("Login Failed", e.message)
            return False

        # Listener already adopted the session unless initialize() was skipped
        if self.user is None or self.user.id != session.user.id or self._state != SessionState.AUTHENTICATED:
            await self._adopt(session)
        return True

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> bool:
        """
        Register a citizen account.

        Always returns True: remote failures fall back to a stand-in session.
        """
        metadata = {"full_name": full_name, "role": UserRole.CITIZEN.value}
        if phone:
            metadata["phone"] = phone
        if address:
            metadata["address"] = address

        self._set_state(SessionState.LOADING)

        if self._source.mode == DataSourceMode.SYNTHETIC:
            self._adopt_stand_in(email, metadata)
            self._notifier.notify("Demo Registration", "Account created in demo mode")
            return True

        try:
            session = await self._source.sign_up(email, password, metadata)
        except (RemoteError, TransportError) as e:
            logger.warning(f"Registration failed remotely for {email}, using stand-in session: {e}")
            self._adopt_stand_in(email, metadata)
            self._notifier.notify("Demo Registration", "Account created in demo mode due to connection issues")
            return True

        if session is not None and (self.user is None or self.user.id != session.user.id):
            await self._adopt(session)
        self._settle_state()
        self._notifier.notify("Registration Successful", "Please check your email for verification link")
        return True

    async def logout(self) -> None:
        """
        Clear local state immediately, then revoke the remote session.

        A failing remote sign-out is logged and never raised.
        """
        self._clear()
        await self._revoke_remote_session()

        self._notifier.notify("Logged Out", "You have been logged out successfully")

    @safe_remote_query("sign out")
    async def _revoke_remote_session(self) -> None:
        await self._source.sign_out()

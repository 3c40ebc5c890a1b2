"""
Access guard for protected views.

Purely reactive: decisions are derived from the session store, and the
only state kept here is whether the guarded view may currently render.
"""

import logging
from typing import Callable, Optional, Sequence

from core.events import EventBus, EventType, PortalEvent
from models.model_enum import GuardAction
from schemas.guard import GuardDecision
from services.session_store import SessionStore

logger = logging.getLogger(__name__)

AUTH_ONLY_PATHS = ("/login", "/register")


class AccessGuard:
    """
    Gate a view on the current session.

    Args:
        store: Session store to observe
        require_auth: Whether the view needs a signed-in user
        redirect_to: Login route for anonymous visitors
        dashboard_path: Where signed-in users are sent from auth-only routes
        auth_paths: Routes only anonymous visitors should see
        bus: When given, re-evaluate on every session state change
        path: Route the guard protects (used for re-evaluation)
    """

    def __init__(
        self,
        store: SessionStore,
        require_auth: bool = True,
        redirect_to: str = "/login",
        dashboard_path: str = "/dashboard",
        auth_paths: Sequence[str] = AUTH_ONLY_PATHS,
        bus: Optional[EventBus] = None,
        path: str = "/",
    ):
        self._store = store
        self.require_auth = require_auth
        self.redirect_to = redirect_to
        self.dashboard_path = dashboard_path
        self.auth_paths = tuple(auth_paths)
        self.path = path
        self.should_render = False
        self._unsubscribe: Optional[Callable[[], None]] = None

        if bus is not None:
            self._unsubscribe = bus.subscribe(EventType.SESSION_STATE_CHANGED, self._on_state_changed)
        self.evaluate(path)

    def evaluate(self, path: Optional[str] = None) -> GuardDecision:
        """
        Decide what to do for path.

        Returns:
            WAIT while the session loads, REDIRECT when the visitor is on the
            wrong side of authentication, RENDER otherwise
        """
        if path is not None:
            self.path = path

        if self._store.is_loading:
            decision = GuardDecision(action=GuardAction.WAIT)
        elif self.require_auth and self._store.session is None:
            decision = GuardDecision(action=GuardAction.REDIRECT, target=self.redirect_to, from_path=self.path)
        elif not self.require_auth and self._store.session is not None and self.path in self.auth_paths:
            decision = GuardDecision(action=GuardAction.REDIRECT, target=self.dashboard_path)
        else:
            decision = GuardDecision(action=GuardAction.RENDER)

        self.should_render = decision.should_render
        return decision

    def _on_state_changed(self, event: PortalEvent) -> None:
        decision = self.evaluate()
        logger.debug(f"Guard for {self.path} re-evaluated: {decision.action.value}")

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

"""
In-process event bus for session side effects.

The session store publishes typed events; caches, the query layer and the
access guard subscribe instead of being called from the store's internals.

Delivery is synchronous and in subscription order. A failing handler is
logged and does not stop delivery to the others or fail the publisher.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, DefaultDict, List, Optional

from models.model_enum import SessionState, UserRole

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Event type discriminator."""

    IDENTITY_CHANGED = "identity_changed"  # Signed-in user changed (or signed out)
    SESSION_STATE_CHANGED = "session_state_changed"  # Store state machine moved
    PROFILE_LOADED = "profile_loaded"  # Profile became available or was replaced


@dataclass(frozen=True)
class PortalEvent:
    """Base event; concrete events set event_type."""

    event_type: EventType
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class IdentityChanged(PortalEvent):
    """The identity behind a session changed.

    Attributes:
        previous_user_id: Identity before the change, if any
        user_id: New identity, None after sign-out
        role: Role of the new identity once known
    """

    event_type: EventType = EventType.IDENTITY_CHANGED
    previous_user_id: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[UserRole] = None

    @property
    def signed_out(self) -> bool:
        return self.user_id is None


@dataclass(frozen=True)
class SessionStateChanged(PortalEvent):
    event_type: EventType = EventType.SESSION_STATE_CHANGED
    state: SessionState = SessionState.UNINITIALIZED


@dataclass(frozen=True)
class ProfileLoaded(PortalEvent):
    event_type: EventType = EventType.PROFILE_LOADED
    user_id: Optional[str] = None
    role: Optional[UserRole] = None


Handler = Callable[[PortalEvent], None]


class EventBus:
    """Synchronous publish/subscribe keyed by EventType."""

    def __init__(self):
        self._handlers: DefaultDict[EventType, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Handler) -> Callable[[], None]:
        """
        Register a handler.

        Returns:
            Callable that removes the handler again
        """
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: PortalEvent) -> int:
        """
        Deliver event to every handler registered for its type.

        Returns:
            Number of handlers that completed without raising
        """
        delivered = 0
        for handler in list(self._handlers[event.event_type]):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"EventBus: handler {getattr(handler, '__qualname__', handler)!s} failed for "
                    f"{event.event_type.value} - {type(e).__name__}: {e}",
                    exc_info=True,
                )
        return delivered

    def handler_count(self, event_type: EventType) -> int:
        return len(self._handlers[event_type])

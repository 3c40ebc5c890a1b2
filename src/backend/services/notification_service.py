"""
Transient Notification Service

Per-session queue of toast-style messages produced by portal operations.

Contract:
- Operations enqueue; the presentation layer drains
- Draining marks notifications delivered (they are removed)
- The queue is bounded; the oldest pending notification is dropped first
"""

import logging
from collections import deque
from typing import Deque, List, Optional
from uuid import uuid4

from models.model_enum import NotificationVariant
from schemas.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Bounded notification queue for one portal session."""

    def __init__(self, max_pending: int = 50):
        self._pending: Deque[Notification] = deque(maxlen=max_pending)

    def notify(
        self,
        title: str,
        description: Optional[str] = None,
        variant: NotificationVariant = NotificationVariant.DEFAULT,
    ) -> Notification:
        """
        Enqueue a notification.

        Args:
            title: Short headline
            description: Optional detail (remote messages are passed verbatim)
            variant: DESTRUCTIVE for failures

        Returns:
            The queued notification
        """
        notification = Notification(
            id=str(uuid4()),
            title=title,
            description=description,
            variant=variant,
        )
        self._pending.append(notification)

        log = logger.warning if variant == NotificationVariant.DESTRUCTIVE else logger.debug
        log(f"[NOTIFICATION] {title}" + (f": {description}" if description else ""))
        return notification

    def error(self, title: str, description: Optional[str] = None) -> Notification:
        return self.notify(title, description, NotificationVariant.DESTRUCTIVE)

    def pending(self) -> List[Notification]:
        """Pending notifications, oldest first, without delivering them."""
        return list(self._pending)

    def drain(self) -> List[Notification]:
        """Deliver and remove every pending notification."""
        delivered = list(self._pending)
        self._pending.clear()
        return delivered

    def __len__(self) -> int:
        return len(self._pending)

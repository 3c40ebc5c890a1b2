"""
Notification endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends

from core.dependencies import get_portal
from core.sessions import PortalSession
from schemas.notification import Notification

router = APIRouter()


@router.get("", response_model=List[Notification])
async def drain_notifications(portal: PortalSession = Depends(get_portal)):
    """Pending notifications, oldest first. Each is returned only once."""
    return portal.notifier.drain()

"""
Access guard endpoint.

Lets the browser ask, before rendering a route, whether to wait, redirect
or render it for the current session.
"""
from fastapi import APIRouter, Depends, Query

from core.dependencies import get_portal
from core.sessions import PortalSession
from schemas.guard import GuardDecision

router = APIRouter()


@router.get("", response_model=GuardDecision)
async def evaluate_guard(
    path: str = Query(..., min_length=1),
    require_auth: bool = Query(True),
    portal: PortalSession = Depends(get_portal),
):
    """Guard decision for path."""
    return portal.guard_for(path, require_auth=require_auth).evaluate()

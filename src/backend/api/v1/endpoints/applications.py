"""
Application endpoints.

Role checks live in the application service; its RoleAuthorizationError is
mapped to 403 by the app's exception handlers.
"""
from typing import List

from fastapi import APIRouter, Body, Depends

from core.dependencies import get_portal, require_profile
from core.sessions import PortalSession
from schemas.application import (Application, ApplicationCreate,
                                 ApplicationStats, ApplicationUpdate,
                                 BatchUpdateItem)
from schemas.profile import Profile
from services.filters import application_stats

router = APIRouter()


@router.get("", response_model=List[Application])
async def list_applications(
    portal: PortalSession = Depends(get_portal),
    profile: Profile = Depends(require_profile),
):
    """Applications visible to the caller's role, newest first."""
    return await portal.applications.list_applications()


@router.get("/stats", response_model=ApplicationStats)
async def get_application_stats(
    portal: PortalSession = Depends(get_portal),
    profile: Profile = Depends(require_profile),
):
    """Per-status counts over the caller's visible applications."""
    return application_stats(await portal.applications.list_applications())


@router.post("", response_model=Application, status_code=201)
async def create_application(
    data: ApplicationCreate,
    portal: PortalSession = Depends(get_portal),
    profile: Profile = Depends(require_profile),
):
    """Submit an application (citizens only)."""
    return await portal.applications.create_application(data)


@router.post("/batch", response_model=List[Application])
async def batch_update_applications(
    items: List[BatchUpdateItem] = Body(..., min_length=1),
    portal: PortalSession = Depends(get_portal),
    profile: Profile = Depends(require_profile),
):
    """
    Apply review updates to several applications at once (staff/officer).

    If any item fails the response is 502 naming the first failing item;
    items that succeeded stay updated.
    """
    return await portal.applications.batch_update_applications(items)


@router.patch("/{application_id}", response_model=Application)
async def update_application(
    application_id: str,
    changes: ApplicationUpdate,
    portal: PortalSession = Depends(get_portal),
    profile: Profile = Depends(require_profile),
):
    """Review update on one application (staff/officer)."""
    return await portal.applications.update_application(application_id, changes)

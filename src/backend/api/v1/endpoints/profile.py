"""
Profile endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException

from core.dependencies import AuthenticationError, get_portal, require_profile
from core.sessions import PortalSession
from schemas.profile import Profile, ProfileUpdate

router = APIRouter()


@router.get("", response_model=Profile)
async def get_profile(profile: Profile = Depends(require_profile)):
    """Signed-in user's profile."""
    return profile


@router.patch("", response_model=Profile)
async def update_profile(
    changes: ProfileUpdate,
    portal: PortalSession = Depends(get_portal),
):
    """
    Update name, phone or address.

    In demo mode the change is accepted but not saved.
    """
    if portal.store.session is None:
        raise AuthenticationError()

    if not await portal.store.update_profile(changes):
        raise HTTPException(status_code=502, detail="Profile update failed")

    if portal.store.profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return portal.store.profile

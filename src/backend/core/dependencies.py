"""
Portal session and authorization dependencies for FastAPI.

The browser carries an opaque portal session cookie; these dependencies
resolve it to the PortalSession holding that client's state and check the
signed-in profile's role.
"""

from typing import Callable

from fastapi import Depends, HTTPException, Request, Response, status

from core.config import settings
from core.sessions import PortalSession, SessionRegistry
from models.model_enum import UserRole
from schemas.profile import Profile


class AuthenticationError(HTTPException):
    """Custom authentication error."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthorizationError(HTTPException):
    """Custom authorization error."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_registry(request: Request) -> SessionRegistry:
    """Session registry created by the application lifespan."""
    return request.app.state.session_registry


async def get_portal(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
) -> PortalSession:
    """Resolve (or start) the caller's portal session and refresh its cookie.

    Args:
        request: Incoming request carrying the portal cookie
        response: Outgoing response the cookie is written to
        registry: Portal session registry

    Returns:
        The caller's PortalSession
    """
    cookie_name = settings.api.session_cookie_name
    portal = await registry.get_or_create(request.cookies.get(cookie_name))
    response.set_cookie(
        cookie_name,
        portal.id,
        max_age=settings.cache.session_idle,
        httponly=True,
        samesite="lax",
    )
    return portal


async def require_profile(portal: PortalSession = Depends(get_portal)) -> Profile:
    """Signed-in profile of the caller.

    Raises:
        AuthenticationError: No session, or the profile could not be loaded
    """
    if portal.store.session is None:
        raise AuthenticationError()
    if portal.store.profile is None:
        raise AuthenticationError("Profile not available")
    return portal.store.profile


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory restricting an endpoint to the given roles.

    Example:
        @router.post("", dependencies=[Depends(require_role(UserRole.OFFICER))])
    """

    async def checker(profile: Profile = Depends(require_profile)) -> Profile:
        if profile.role not in roles:
            allowed = ", ".join(role.value for role in roles)
            raise AuthorizationError(f"Requires role: {allowed}")
        return profile

    return checker

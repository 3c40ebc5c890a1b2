"""
Authentication endpoints.

Sign-in, registration and sign-out operate on the caller's portal session;
tokens never leave the server.
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import AuthenticationError, get_portal
from core.sessions import PortalSession
from schemas.auth import AuthResult, LoginRequest, RegisterRequest, SessionInfo

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=AuthResult)
async def login(
    credentials: LoginRequest,
    portal: PortalSession = Depends(get_portal),
):
    """
    Sign in with email and password.

    Falls back to a demo session when the backend is unavailable.
    Rejected credentials answer 401; the reason is queued as a notification.
    """
    success = await portal.store.login(credentials.email, credentials.password)
    if not success:
        raise AuthenticationError("Invalid login credentials")
    return AuthResult(success=True, is_stand_in=portal.store.is_stand_in)


@router.post("/register", response_model=AuthResult, status_code=201)
async def register(
    data: RegisterRequest,
    portal: PortalSession = Depends(get_portal),
):
    """Register a citizen account."""
    success = await portal.store.register(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        phone=data.phone,
        address=data.address,
    )
    return AuthResult(success=success, is_stand_in=portal.store.is_stand_in)


@router.post("/logout", response_model=AuthResult)
async def logout(portal: PortalSession = Depends(get_portal)):
    """Sign out and clear every cached profile for this client."""
    await portal.store.logout()
    return AuthResult(success=True)


@router.get("/session", response_model=SessionInfo)
async def get_session_info(portal: PortalSession = Depends(get_portal)):
    """Current session snapshot (no tokens)."""
    store = portal.store
    return SessionInfo(
        state=store.state,
        is_loading=store.is_loading,
        is_authenticated=store.is_authenticated,
        is_stand_in=store.is_stand_in,
        data_source=portal.mode,
        user_id=store.user.id if store.user else None,
        email=store.user.email if store.user else None,
        role=store.profile.role if store.profile else None,
    )

"""Auth and session schema definitions."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import EmailStr, Field

from core.schema_base import HTTPSchemaModel
from models.model_enum import DataSourceMode, SessionState, UserRole


class AuthUser(HTTPSchemaModel):
    """User object issued by the hosted auth subsystem."""

    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class AuthSession(HTTPSchemaModel):
    """Session tokens plus the user they belong to.

    Expiry and refresh are managed by the remote auth subsystem.
    """

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: AuthUser


class LoginRequest(HTTPSchemaModel):
    """Credentials for password sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(HTTPSchemaModel):
    """Citizen self-registration fields."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)


class AuthResult(HTTPSchemaModel):
    """Outcome of login/register/logout."""

    success: bool
    is_stand_in: bool = False


class SessionInfo(HTTPSchemaModel):
    """Reactive session snapshot exposed to the browser (no tokens)."""

    state: SessionState
    is_loading: bool
    is_authenticated: bool
    is_stand_in: bool
    data_source: DataSourceMode
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None

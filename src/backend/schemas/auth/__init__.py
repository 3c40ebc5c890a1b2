"""Auth schemas package."""
from .auth import (AuthResult, AuthSession, AuthUser, LoginRequest,
                   RegisterRequest, SessionInfo)

__all__ = [
    "AuthUser",
    "AuthSession",
    "LoginRequest",
    "RegisterRequest",
    "AuthResult",
    "SessionInfo",
]

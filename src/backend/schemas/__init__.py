"""
Schemas package for portal records and API serialization.

Rows from the hosted backend are snake_case; every schema also accepts
and emits camelCase aliases for the browser client.
"""
from .application import (Application, ApplicationCreate, ApplicationStats,
                          ApplicationUpdate, BatchUpdateItem)
from .auth import (AuthResult, AuthSession, AuthUser, LoginRequest,
                   RegisterRequest, SessionInfo)
from .guard import GuardDecision
from .notification import Notification
from .profile import CitizenSummary, Profile, ProfileUpdate
from .service import (Service, ServiceBase, ServiceCreate, ServiceStats,
                      ServiceSummary, ServiceUpdate)

__all__ = [
    # Application
    "Application",
    "ApplicationCreate",
    "ApplicationUpdate",
    "ApplicationStats",
    "BatchUpdateItem",
    # Auth
    "AuthUser",
    "AuthSession",
    "LoginRequest",
    "RegisterRequest",
    "AuthResult",
    "SessionInfo",
    # Guard
    "GuardDecision",
    # Notification
    "Notification",
    # Profile
    "Profile",
    "ProfileUpdate",
    "CitizenSummary",
    # Service
    "Service",
    "ServiceBase",
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceSummary",
    "ServiceStats",
]

"""
API v1 routes.
"""

from fastapi import APIRouter

from .endpoints import (applications, auth, guard, notifications, profile,
                        services)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

api_router.include_router(profile.router, prefix="/profile", tags=["profile"])

api_router.include_router(services.router, prefix="/services", tags=["services"])

api_router.include_router(
    applications.router, prefix="/applications", tags=["applications"]
)

api_router.include_router(guard.router, prefix="/guard", tags=["guard"])

api_router.include_router(
    notifications.router, prefix="/notifications", tags=["notifications"]
)

"""
Health check endpoint handler.
"""

from fastapi import APIRouter, Request

from core.config import settings
from models.model_enum import DataSourceMode

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring.
    Reports which data source new portal sessions use; synthetic mode is
    healthy but degraded from the backend's point of view.
    """
    http_client = getattr(request.app.state, "http_client", None)
    registry = getattr(request.app.state, "session_registry", None)

    mode = DataSourceMode.REMOTE if settings.supabase.is_configured and http_client is not None else DataSourceMode.SYNTHETIC

    return {
        "status": "healthy",
        "dataSource": mode.value,
        "activeSessions": len(registry) if registry is not None else 0,
    }

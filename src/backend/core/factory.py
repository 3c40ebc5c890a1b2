"""
Data source factory.

Selects the data source implementation once per portal session from
configuration validity, and builds the process-wide HTTP client the remote
implementation shares.
"""

import logging
from typing import Optional

import httpx

from core.config import Settings
from repositories.data_source import DataSource
from repositories.remote_data_source import RemoteDataSource
from repositories.synthetic_data_source import SyntheticDataSource

logger = logging.getLogger(__name__)


def create_http_client(settings: Settings) -> Optional[httpx.AsyncClient]:
    """
    Create the shared async HTTP client for the hosted backend.

    Returns:
        A pooled client, or None when no backend is configured
    """
    if not settings.supabase.is_configured:
        logger.info("Supabase not configured; portal sessions will use synthetic data")
        return None

    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.supabase.timeout_seconds),
        headers={"Content-Type": "application/json"},
        # Connection pooling
        limits=httpx.Limits(
            max_connections=settings.supabase.max_connections,
            max_keepalive_connections=settings.supabase.max_keepalive_connections,
        ),
    )


def build_data_source(settings: Settings, http_client: Optional[httpx.AsyncClient]) -> DataSource:
    """
    Pick the data source for a new portal session.

    Args:
        settings: Application settings
        http_client: Shared client from create_http_client()

    Returns:
        RemoteDataSource when the backend is configured and a client exists,
        SyntheticDataSource otherwise
    """
    if settings.supabase.is_configured and http_client is not None:
        return RemoteDataSource(http_client, settings.supabase)
    return SyntheticDataSource()

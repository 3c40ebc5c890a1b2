"""
Lifespan startup and shutdown task functions.

This module contains individual task functions for application startup
and shutdown sequences. Each function handles a specific responsibility.
"""

import logging

from fastapi import FastAPI

from core.factory import create_http_client
from core.sessions import SessionRegistry


async def initialize_logging(settings, log_config):
    """Setup logging configuration."""
    from core.logging_config import setup_logging

    logger = logging.getLogger("main")
    setup_logging(log_config)
    logger.info(f"🚀 Starting {settings.api.app_name}...")


async def log_cors_configuration(settings, logger):
    """Log CORS configuration for debugging."""
    logger.info(f"🔒 CORS Allowed Origins: {settings.cors.origins}")


async def initialize_portal_sessions(app: FastAPI, settings):
    """Create the shared HTTP client and the portal session registry."""
    logger = logging.getLogger("main")

    http_client = create_http_client(settings)
    app.state.http_client = http_client
    app.state.session_registry = SessionRegistry(settings, http_client)

    mode = "remote" if http_client is not None else "synthetic"
    logger.info(f"✅ Portal sessions ready (data source: {mode})")


async def shutdown_portal_sessions(app: FastAPI):
    """Close every portal session, then the shared HTTP client."""
    logger = logging.getLogger("main")

    registry = getattr(app.state, "session_registry", None)
    if registry is not None:
        try:
            await registry.close_all()
        except Exception as e:
            logger.warning(f"⚠️  Error closing portal sessions: {e}")

    http_client = getattr(app.state, "http_client", None)
    if http_client is not None and not http_client.is_closed:
        await http_client.aclose()
        logger.info("✅ HTTP client closed")

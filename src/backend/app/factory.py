"""
Application factory for FastAPI.

This module provides the create_app() function that creates and configures
the FastAPI application instance.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import api_router
from app.routes import health_router, root_router
from core.config import settings
from core.exceptions import (BatchUpdateError, RemoteOperationError,
                             RoleAuthorizationError, ValidationError)
from core.lifespan import lifespan

logger = logging.getLogger(__name__)


async def authorization_error_handler(request: Request, exc: RoleAuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": exc.message})


async def remote_operation_error_handler(request: Request, exc: RemoteOperationError) -> JSONResponse:
    """Remote write rejected; batch failures also report which items failed."""
    content = {"detail": exc.message}
    if exc.code:
        content["code"] = exc.code
    if isinstance(exc, BatchUpdateError):
        content["failedIds"] = exc.failed_ids
        content["succeededIds"] = exc.succeeded_ids
    logger.warning(f"{request.method} {request.url.path} -> 502: {exc.message}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=content)


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with all necessary
    middleware, routes, and exception handlers.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Citizen service portal: catalog browsing, applications and review",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Portal-level failures raised past the query layer
    app.add_exception_handler(RoleAuthorizationError, authorization_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RemoteOperationError, remote_operation_error_handler)

    # CORS middleware; credentials are required for the portal session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.api.api_v1_prefix)

    return app

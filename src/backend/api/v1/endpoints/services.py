"""
Service catalog endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import get_portal, require_role
from core.sessions import PortalSession
from models.model_enum import UserRole
from schemas.profile import Profile
from schemas.service import Service, ServiceCreate, ServiceStats, ServiceUpdate
from services.filters import ALL_CATEGORIES, filter_services, service_stats

router = APIRouter()

require_officer = require_role(UserRole.OFFICER)


# =============================================================================
# CATALOG READS
# =============================================================================

@router.get("", response_model=List[Service])
async def list_services(
    search: Optional[str] = Query(None, description="Case-insensitive match on name or description"),
    category: str = Query(ALL_CATEGORIES, description="Category value or 'all'"),
    portal: PortalSession = Depends(get_portal),
):
    """
    Active services ordered by name.

    - **search**: substring matched against name or description
    - **category**: exact category, or `all`
    """
    services = await portal.services.list_active_services()
    return filter_services(services, search, category)


@router.get("/all", response_model=List[Service])
async def list_all_services(
    portal: PortalSession = Depends(get_portal),
    officer: Profile = Depends(require_officer),
):
    """Every service including deactivated ones (officer only)."""
    return await portal.services.list_all_services()


@router.get("/stats", response_model=ServiceStats)
async def get_service_stats(portal: PortalSession = Depends(get_portal)):
    """Category and fee counts over the active catalog."""
    return service_stats(await portal.services.list_active_services())


# =============================================================================
# CATALOG MUTATIONS (officer only)
# =============================================================================

@router.post("", response_model=Service, status_code=201)
async def create_service(
    data: ServiceCreate,
    portal: PortalSession = Depends(get_portal),
    officer: Profile = Depends(require_officer),
):
    """Add a service to the catalog."""
    return await portal.services.create_service(data, created_by=officer.id)


@router.patch("/{service_id}", response_model=Service)
async def update_service(
    service_id: str,
    changes: ServiceUpdate,
    portal: PortalSession = Depends(get_portal),
    officer: Profile = Depends(require_officer),
):
    """Partially update a service."""
    return await portal.services.update_service(service_id, changes)


@router.delete("/{service_id}", response_model=Service)
async def delete_service(
    service_id: str,
    portal: PortalSession = Depends(get_portal),
    officer: Profile = Depends(require_officer),
):
    """Deactivate a service. It stays stored with isActive=false."""
    return await portal.services.delete_service(service_id)

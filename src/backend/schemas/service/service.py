"""Service catalog schema definitions."""

from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import ConfigDict, Field

from core.schema_base import HTTPSchemaModel
from models.model_enum import ServiceCategory


class ServiceBase(HTTPSchemaModel):
    """Base service schema with common fields."""

    name: str = Field(..., max_length=200)
    description: str
    category: ServiceCategory
    required_documents: Tuple[str, ...] = ()
    processing_time: str = Field(..., max_length=100, description="Display string, e.g. '7 days'")
    fees: float = Field(0, ge=0)
    is_active: bool = True


class ServiceCreate(ServiceBase):
    """Schema for creating a new service."""

    pass


class ServiceUpdate(HTTPSchemaModel):
    """Schema for updating a service."""

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[ServiceCategory] = None
    required_documents: Optional[Tuple[str, ...]] = None
    processing_time: Optional[str] = Field(None, max_length=100)
    fees: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class Service(ServiceBase):
    """
    Catalog entry as stored remotely.

    Frozen so listings can be hashed by the memoized filter helpers.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ServiceSummary(HTTPSchemaModel):
    """Denormalized service columns embedded in application listings."""

    name: str
    category: ServiceCategory
    fees: float
    processing_time: str


class ServiceStats(HTTPSchemaModel):
    """Aggregate counts over a service listing."""

    total: int
    by_category: Dict[str, int]
    free_services: int
    paid_services: int

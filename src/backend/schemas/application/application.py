"""Application schema definitions."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from models.model_enum import ApplicationStatus
from schemas.profile import CitizenSummary
from schemas.service import ServiceSummary


class ApplicationCreate(HTTPSchemaModel):
    """Citizen submission for a service.

    citizen_id and status are never client supplied.
    """

    service_id: str = Field(..., min_length=1)
    application_data: Dict[str, str] = Field(default_factory=dict)
    documents_uploaded: List[str] = Field(default_factory=list)


class ApplicationUpdate(HTTPSchemaModel):
    """Partial review update applied by staff or officers."""

    status: Optional[ApplicationStatus] = None
    remarks: Optional[str] = None
    assigned_to: Optional[str] = None


class BatchUpdateItem(HTTPSchemaModel):
    """One entry of a batch review update."""

    id: str
    status: ApplicationStatus
    remarks: Optional[str] = None


class Application(HTTPSchemaModel):
    """A citizen's request against a service, with display joins."""

    id: str
    citizen_id: str
    service_id: str
    status: ApplicationStatus
    application_data: Dict[str, Any] = Field(default_factory=dict)
    documents_uploaded: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    remarks: Optional[str] = None
    submitted_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    service: Optional[ServiceSummary] = None
    citizen: Optional[CitizenSummary] = None


class ApplicationStats(HTTPSchemaModel):
    """Per-status counts over an application listing."""

    total: int = 0
    pending: int = 0
    under_review: int = 0
    approved: int = 0
    rejected: int = 0
    completed: int = 0

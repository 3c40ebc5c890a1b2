"""Profile schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from models.model_enum import UserRole


class Profile(HTTPSchemaModel):
    """One profile per identity, 1:1 with the auth user id."""

    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(HTTPSchemaModel):
    """Partial profile update.

    Role and email are owned by the backend and cannot be changed here.
    """

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)


class CitizenSummary(HTTPSchemaModel):
    """Denormalized citizen columns embedded in application listings."""

    full_name: str
    email: str
    phone: Optional[str] = None

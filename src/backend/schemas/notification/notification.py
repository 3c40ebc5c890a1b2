"""Transient notification schema."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import HTTPSchemaModel, utc_now
from models.model_enum import NotificationVariant


class Notification(HTTPSchemaModel):
    """A toast-style message produced by a portal operation."""

    id: str
    title: str
    description: Optional[str] = None
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = Field(default_factory=utc_now)

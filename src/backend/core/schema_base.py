"""
Base schema model for portal records and API responses.

Provides automatic camelCase aliases for the browser client, accepts the
snake_case rows the hosted backend returns, and serializes datetimes with
a UTC 'Z' suffix.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("full_name")
        'fullName'
        >>> to_camel("submitted_at")
        'submittedAt'
    """
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize datetime to ISO 8601 format with UTC timezone indicator.

    Timezone-aware values are converted to UTC first; naive values are
    assumed to already be UTC.

    Returns:
        ISO 8601 string with 'Z' suffix (e.g., "2025-12-18T14:30:00Z")
        or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class HTTPSchemaModel(BaseModel):
    """
    Base model for all portal schemas.

    Provides:
    - camelCase aliases for field names (browser client compatibility)
    - Support for both snake_case and camelCase input
    - Consistent datetime serialization with UTC timezone indicator ('Z' suffix)
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        """Serialize datetime fields with the UTC indicator, delegate the rest."""
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)

    def to_row(self, **kwargs: Any) -> dict:
        """Dump as a snake_case, JSON-safe dict for the hosted backend."""
        return self.model_dump(mode="json", by_alias=False, **kwargs)

"""
Test data factories for generating realistic portal rows.

Usage:
    citizen = ProfileFactory.create(role=UserRole.CITIZEN)
    row = ApplicationFactory.row(citizen_id=citizen.id, status="pending")
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from models.model_enum import ServiceCategory, UserRole
from schemas.application import Application
from schemas.auth import AuthUser
from schemas.profile import Profile
from schemas.service import Service

BASE_TIME = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def _unique_suffix() -> str:
    """Generate a unique suffix for test data."""
    return uuid.uuid4().hex[:8]


class ProfileFactory:
    """Factory for Profile instances and rows."""

    names = ["Asha Patil", "Ravi Kumar", "Meena Devi", "Suresh Rao", "Lakshmi Nair", "Anil Joshi"]

    @classmethod
    def create(
        cls,
        role: UserRole = UserRole.CITIZEN,
        id: Optional[str] = None,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Profile:
        """Create a Profile with realistic defaults."""
        suffix = _unique_suffix()
        if full_name is None:
            full_name = cls.names[int(suffix, 16) % len(cls.names)]
        if email is None:
            email = f"{full_name.split()[0].lower()}.{suffix}@village.example"

        return Profile(
            id=id or f"user-{suffix}",
            full_name=full_name,
            email=email,
            phone=phone,
            address=address,
            role=role,
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
        )

    @classmethod
    def row(cls, **kwargs) -> Dict[str, Any]:
        return cls.create(**kwargs).to_row()

    @staticmethod
    def auth_user(profile: Profile, metadata: Optional[Dict[str, Any]] = None) -> AuthUser:
        """Auth user matching a profile."""
        return AuthUser(
            id=profile.id,
            email=profile.email,
            user_metadata=metadata if metadata is not None else {"full_name": profile.full_name},
            created_at=BASE_TIME,
        )


class ServiceFactory:
    """Factory for Service instances and rows."""

    @classmethod
    def row(
        cls,
        name: Optional[str] = None,
        description: str = "Issued by the Gram Panchayat office.",
        category: ServiceCategory = ServiceCategory.CERTIFICATES,
        fees: float = 0,
        processing_time: str = "7 days",
        is_active: bool = True,
        id: Optional[str] = None,
        required_documents: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        suffix = _unique_suffix()
        return {
            "id": id or f"service-{suffix}",
            "name": name or f"Certificate {suffix}",
            "description": description,
            "category": category.value,
            "required_documents": required_documents or ["ID proof"],
            "processing_time": processing_time,
            "fees": fees,
            "is_active": is_active,
            "created_by": None,
            "created_at": BASE_TIME.isoformat(),
            "updated_at": BASE_TIME.isoformat(),
        }

    @classmethod
    def create(cls, **kwargs) -> Service:
        return Service.model_validate(cls.row(**kwargs))


class ApplicationFactory:
    """Factory for Application instances and rows."""

    _sequence = 0

    @classmethod
    def row(
        cls,
        citizen_id: str,
        service_id: str = "demo-service-1",
        status: str = "pending",
        assigned_to: Optional[str] = None,
        remarks: Optional[str] = None,
        id: Optional[str] = None,
        completed_at: Optional[str] = None,
        application_data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Stored application row; each call is submitted one minute after the last."""
        cls._sequence += 1
        submitted = BASE_TIME + timedelta(minutes=cls._sequence)
        return {
            "id": id or f"app-{_unique_suffix()}",
            "citizen_id": citizen_id,
            "service_id": service_id,
            "status": status,
            "application_data": application_data or {"purpose": "household records"},
            "documents_uploaded": [],
            "assigned_to": assigned_to,
            "remarks": remarks,
            "submitted_at": submitted.isoformat(),
            "updated_at": submitted.isoformat(),
            "completed_at": completed_at,
        }

    @classmethod
    def create(cls, **kwargs) -> Application:
        return Application.model_validate(cls.row(**kwargs))

"""
Pure filtering and statistics helpers over already-fetched collections.

No remote interaction. Service filtering is memoized on the (immutable)
listing, so repeated renders with the same search inputs are free.
"""
from collections import Counter
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from models.model_enum import ApplicationStatus, ServiceCategory, UserRole
from schemas.application import Application, ApplicationStats
from schemas.profile import Profile
from schemas.service import Service, ServiceStats

ALL_CATEGORIES = "all"


@lru_cache(maxsize=128)
def _filter_services(services: Tuple[Service, ...], term: str, category: str) -> Tuple[Service, ...]:
    needle = term.strip().lower()
    return tuple(
        service for service in services
        if (
            not needle
            or needle in service.name.lower()
            or needle in service.description.lower()
        )
        and (category == ALL_CATEGORIES or service.category.value == category)
    )


def filter_services(
    services: Iterable[Service],
    term: Optional[str] = None,
    category: Optional[str] = ALL_CATEGORIES,
) -> List[Service]:
    """
    Filter a service listing by search term and category.

    Args:
        services: Listing to filter
        term: Case-insensitive substring matched against name or description
        category: Exact category value, or "all" to skip the category test

    Returns:
        Matching services in their original order
    """
    if isinstance(category, ServiceCategory):
        category = category.value
    return list(_filter_services(tuple(services), term or "", category or ALL_CATEGORIES))


def service_stats(services: Sequence[Service]) -> ServiceStats:
    """Total, per-category, free and paid counts."""
    by_category = Counter(service.category.value for service in services)
    free = sum(1 for service in services if service.fees == 0)
    return ServiceStats(
        total=len(services),
        by_category=dict(by_category),
        free_services=free,
        paid_services=len(services) - free,
    )


def application_stats(applications: Sequence[Application]) -> ApplicationStats:
    counts = Counter(application.status for application in applications)
    return ApplicationStats(
        total=len(applications),
        pending=counts[ApplicationStatus.PENDING],
        under_review=counts[ApplicationStatus.UNDER_REVIEW],
        approved=counts[ApplicationStatus.APPROVED],
        rejected=counts[ApplicationStatus.REJECTED],
        completed=counts[ApplicationStatus.COMPLETED],
    )


def is_visible_to(profile: Profile, application: Application) -> bool:
    """Role visibility rule for a single application."""
    if profile.role == UserRole.CITIZEN:
        return application.citizen_id == profile.id
    if profile.role == UserRole.STAFF:
        return application.assigned_to in (None, profile.id)
    return profile.role == UserRole.OFFICER


def visible_applications(profile: Optional[Profile], applications: Iterable[Application]) -> List[Application]:
    """Client-side role re-filter of fetched applications."""
    if profile is None:
        return []
    return [application for application in applications if is_visible_to(profile, application)]

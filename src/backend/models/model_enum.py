"""
Enums mirroring the hosted database's enum types.

These are fixed, small value sets defined by the remote schema
(user_role, service_category, application_status) plus the
client-side enums used by the session store and access guard.
"""
from enum import Enum
from typing import Dict, FrozenSet


class UserRole(str, Enum):
    """
    Role carried on every profile.

    Citizens submit applications, staff review and self-assign them,
    officers see everything and manage the service catalog.
    """
    OFFICER = "officer"
    STAFF = "staff"
    CITIZEN = "citizen"


class ServiceCategory(str, Enum):
    """Catalog category for a service."""
    CERTIFICATES = "certificates"
    LICENSES = "licenses"
    PERMITS = "permits"
    PAYMENTS = "payments"
    UTILITIES = "utilities"


class ApplicationStatus(str, Enum):
    """
    Lifecycle of a citizen application.

    pending -> under_review -> approved | rejected, approved -> completed.
    """
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        """Check a status change against the review workflow.

        Re-applying the current status is always allowed.
        """
        if target == self:
            return True
        return target in _STATUS_TRANSITIONS[self]


_STATUS_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.UNDER_REVIEW}),
    ApplicationStatus.UNDER_REVIEW: frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}),
    ApplicationStatus.APPROVED: frozenset({ApplicationStatus.COMPLETED}),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.COMPLETED: frozenset(),
}


class AuthEvent(str, Enum):
    """Auth notifications emitted by a data source."""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class SessionState(str, Enum):
    """Session store state machine."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class DataSourceMode(str, Enum):
    """Which data source implementation backs a portal session."""
    REMOTE = "remote"
    SYNTHETIC = "synthetic"


class NotificationVariant(str, Enum):
    """Visual weight of a transient notification."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class GuardAction(str, Enum):
    """Outcome of an access guard evaluation."""
    WAIT = "wait"
    REDIRECT = "redirect"
    RENDER = "render"

"""
Portal business logic: session store, entity query layer and notifications.
"""
from .application_service import ApplicationService
from .notification_service import NotificationService
from .service_catalog_service import ServiceCatalogService
from .session_store import SessionStore

__all__ = [
    "SessionStore",
    "ServiceCatalogService",
    "ApplicationService",
    "NotificationService",
]

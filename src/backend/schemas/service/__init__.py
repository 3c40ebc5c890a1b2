"""Service catalog schemas package."""
from .service import (Service, ServiceBase, ServiceCreate, ServiceStats,
                      ServiceSummary, ServiceUpdate)

__all__ = [
    "Service",
    "ServiceBase",
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceSummary",
    "ServiceStats",
]

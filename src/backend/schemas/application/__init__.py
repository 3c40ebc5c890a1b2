"""Application schemas package."""
from .application import (Application, ApplicationCreate, ApplicationStats,
                          ApplicationUpdate, BatchUpdateItem)

__all__ = [
    "Application",
    "ApplicationCreate",
    "ApplicationUpdate",
    "ApplicationStats",
    "BatchUpdateItem",
]

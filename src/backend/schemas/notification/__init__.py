"""Notification schemas package."""
from .notification import Notification

__all__ = ["Notification"]

"""Access guard schemas package."""
from .guard import GuardDecision

__all__ = ["GuardDecision"]

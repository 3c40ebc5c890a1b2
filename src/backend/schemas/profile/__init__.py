"""Profile schemas package."""
from .profile import CitizenSummary, Profile, ProfileUpdate

__all__ = [
    "Profile",
    "ProfileUpdate",
    "CitizenSummary",
]

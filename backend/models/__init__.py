"""SQLModel models package."""

from .user import User
from .views import PublicChannel, PublicUser

__all__ = [
    "User",
    "PublicUser",
    "PublicChannel",
]

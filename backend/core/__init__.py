"""Core configuration, security and error primitives."""

from .config import Settings, settings
from .security import hash_password, verify_and_update_password, verify_password

__all__ = [
    "Settings",
    "settings",
    "hash_password",
    "verify_password",
    "verify_and_update_password",
]

"""Password hashing helpers."""

from __future__ import annotations

from functools import lru_cache

from pwdlib import PasswordHash


@lru_cache
def get_password_hasher() -> PasswordHash:
    """Return the shared Argon2 hasher."""
    return PasswordHash.recommended()


def hash_password(password: str) -> str:
    return get_password_hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return get_password_hasher().verify(password, password_hash)


def verify_and_update_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Verify a password and return a replacement hash when parameters are outdated."""
    return get_password_hasher().verify_and_update(password, password_hash)


__all__ = [
    "get_password_hasher",
    "hash_password",
    "verify_password",
    "verify_and_update_password",
]

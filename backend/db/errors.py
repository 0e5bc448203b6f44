"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    # SQLite reports "UNIQUE constraint failed: users.email".
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def violated_column(error: IntegrityError) -> str | None:
    """Best-effort name of the column behind a unique violation."""
    message = str(getattr(error, "orig", None) or error).lower()
    for column in ("username", "email"):
        if column in message:
            return column
    return None


__all__ = ["is_unique_violation", "violated_column"]

"""Database helpers."""

from .errors import is_unique_violation, violated_column
from .session import AsyncSessionMaker, async_engine

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "is_unique_violation",
    "violated_column",
]

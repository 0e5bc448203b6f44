"""Single-slot refresh-token persistence and rotation helpers."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, cast

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_token_matches(user: User, token: str) -> bool:
    """True when ``token`` is the one currently stored for ``user``."""
    stored = user.refresh_token_hash
    if not stored:
        return False
    return hmac.compare_digest(stored, hash_refresh_token(token))


async def store_refresh_token(session: AsyncSession, user_id: str, token: str) -> None:
    """Overwrite the user's refresh slot, revoking whatever was there."""
    await session.execute(
        update(User)
        .where(_eq(User.id, user_id))
        .values(refresh_token_hash=hash_refresh_token(token))
        .execution_options(synchronize_session=False)
    )


async def swap_refresh_token(
    session: AsyncSession,
    user_id: str,
    *,
    presented: str,
    replacement: str,
) -> bool:
    """Replace ``presented`` with ``replacement`` only if it is still current.

    Returns False when another request rotated or cleared the slot first.
    """
    result = await session.execute(
        update(User)
        .where(
            _eq(User.id, user_id),
            _eq(User.refresh_token_hash, hash_refresh_token(presented)),
        )
        .values(refresh_token_hash=hash_refresh_token(replacement))
        .execution_options(synchronize_session=False)
    )
    return cast(Any, result).rowcount == 1


async def clear_refresh_token(session: AsyncSession, user_id: str) -> None:
    await session.execute(
        update(User)
        .where(_eq(User.id, user_id))
        .values(refresh_token_hash=None)
        .execution_options(synchronize_session=False)
    )

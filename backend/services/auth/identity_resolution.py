"""Identity normalization and credential-store lookups."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ne(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column != value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_username(value: str) -> str:
    return value.strip().lower()


async def registration_conflict_exists(
    session: AsyncSession,
    *,
    username: str,
    normalized_email: str,
) -> bool:
    existing = await session.execute(
        select(User.id)
        .where(
            or_(
                _eq(User.username, username),
                _eq(User.email, normalized_email),
            )
        )
        .limit(1)
    )
    return existing.scalar_one_or_none() is not None


async def email_taken_by_other(
    session: AsyncSession,
    *,
    normalized_email: str,
    user_id: str,
) -> bool:
    existing = await session.execute(
        select(User.id)
        .where(_eq(User.email, normalized_email), _ne(User.id, user_id))
        .limit(1)
    )
    return existing.scalar_one_or_none() is not None


async def find_login_user(
    session: AsyncSession,
    *,
    username: str | None,
    email: str | None,
) -> User | None:
    """Return the user matching ``username`` OR ``email``.

    Username matches win when the two identifiers point at different records.
    """
    conditions: list[ColumnElement[bool]] = []
    normalized_username = normalize_username(username) if username else None
    if normalized_username:
        conditions.append(_eq(User.username, normalized_username))
    if email and email.strip():
        conditions.append(_eq(User.email, normalize_email(email)))
    if not conditions:
        return None

    result = await session.execute(select(User).where(or_(*conditions)).limit(2))
    candidates = result.scalars().all()
    for candidate in candidates:
        if candidate.username == normalized_username:
            return candidate
    return candidates[0] if candidates else None


async def find_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.username, normalize_username(username)))
    )
    return result.scalar_one_or_none()

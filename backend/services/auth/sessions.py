"""Login, refresh, logout and password-change flows.

A user has at most one refresh token that can still be exchanged. Login and
refresh both overwrite it, so any earlier refresh token stops working even
though its signature and expiry are still valid. Access tokens are stateless
and stay valid until they expire.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password, verify_and_update_password, verify_password
from core.errors import NotFoundError, UnauthorizedError, ValidationError
from models import PublicUser, User

from .identity_resolution import find_login_user
from .token_store import (
    clear_refresh_token,
    refresh_token_matches,
    store_refresh_token,
    swap_refresh_token,
)
from .tokens import InvalidTokenError, TokenKind, TokenPair, TokenService

logger = logging.getLogger(__name__)

REFRESH_REUSED_MESSAGE = "Refresh token is expired or used"


@dataclass(frozen=True)
class IssuedSession:
    access_token: str
    refresh_token: str
    user: PublicUser


def _issue_pair(tokens: TokenService, user: User) -> TokenPair:
    return tokens.issue_pair(
        user.id,
        username=user.username,
        email=user.email,
        fullName=user.full_name,
    )


async def login(
    session: AsyncSession,
    tokens: TokenService,
    *,
    username: str | None,
    email: str | None,
    password: str,
) -> IssuedSession:
    if not (username and username.strip()) and not (email and email.strip()):
        raise ValidationError("username or email is required")

    user = await find_login_user(session, username=username, email=email)
    if user is None:
        raise NotFoundError("User does not exist")

    valid, upgraded_hash = verify_and_update_password(password, user.password_hash)
    if not valid:
        logger.info("Rejected login with bad password", extra={"user_id": user.id})
        raise UnauthorizedError("Invalid user credentials")
    if upgraded_hash is not None:
        user.password_hash = upgraded_hash

    pair = _issue_pair(tokens, user)
    await store_refresh_token(session, user.id, pair.refresh_token)
    await session.commit()
    await session.refresh(user)

    logger.info("User logged in", extra={"user_id": user.id})
    return IssuedSession(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=PublicUser.from_user(user),
    )


async def refresh(
    session: AsyncSession,
    tokens: TokenService,
    presented: str | None,
) -> IssuedSession:
    if not presented:
        raise UnauthorizedError("Unauthorized request")

    try:
        claims = tokens.verify(presented, TokenKind.REFRESH)
    except InvalidTokenError as exc:
        raise UnauthorizedError("Invalid refresh token") from exc

    user = await session.get(User, claims["sub"])
    if user is None:
        raise UnauthorizedError("Invalid refresh token")

    if not refresh_token_matches(user, presented):
        logger.warning("Rejected superseded refresh token", extra={"user_id": user.id})
        raise UnauthorizedError(REFRESH_REUSED_MESSAGE)

    user_id = user.id
    pair = _issue_pair(tokens, user)
    rotated = await swap_refresh_token(
        session,
        user_id,
        presented=presented,
        replacement=pair.refresh_token,
    )
    if not rotated:
        # Another request spent the same token between our read and write.
        # The rollback expires `user`, so only `user_id` is safe to read below.
        await session.rollback()
        logger.warning("Lost refresh rotation race", extra={"user_id": user_id})
        raise UnauthorizedError(REFRESH_REUSED_MESSAGE)
    await session.commit()
    await session.refresh(user)

    return IssuedSession(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=PublicUser.from_user(user),
    )


async def logout(session: AsyncSession, user_id: str) -> None:
    await clear_refresh_token(session, user_id)
    await session.commit()
    logger.info("User logged out", extra={"user_id": user_id})


async def change_password(
    session: AsyncSession,
    user_id: str,
    *,
    old_password: str | None,
    new_password: str | None,
) -> None:
    if not old_password or not new_password or not new_password.strip():
        raise ValidationError("oldPassword and newPassword are required")

    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User does not exist")

    if not verify_password(old_password, user.password_hash):
        raise UnauthorizedError("Invalid old password")

    user.password_hash = hash_password(new_password)
    session.add(user)
    await session.commit()
    logger.info("Password changed", extra={"user_id": user_id})

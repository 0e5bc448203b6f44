"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core import Settings, settings
from core.errors import UnauthorizedError
from db.session import AsyncSessionMaker
from models import User
from services.auth import ACCESS_COOKIE, InvalidTokenError, TokenKind, TokenService, get_token_service

BEARER_PREFIX = "bearer "


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionMaker() as session:
        yield session


def get_settings() -> Settings:
    return settings


def get_tokens() -> TokenService:
    return get_token_service()


def _extract_access_token(request: Request) -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    header = request.headers.get("authorization", "")
    if header.lower().startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None
    return None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> User:
    """Resolve the caller from the access-token cookie or bearer header."""
    token = _extract_access_token(request)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    try:
        claims = tokens.verify(token, TokenKind.ACCESS)
    except InvalidTokenError as exc:
        raise UnauthorizedError("Invalid access token") from exc

    user = await session.get(User, claims["sub"])
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user

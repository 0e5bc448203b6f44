"""Registration and session endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_settings, get_tokens
from api.responses import ApiResponse
from core import Settings
from models import PublicUser, User
from services import accounts
from services.auth import (
    REFRESH_COOKIE,
    IssuedSession,
    TokenService,
    clear_token_cookies,
    set_token_cookies,
)
from services.auth import sessions

router = APIRouter(tags=["auth"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(_CamelModel):
    username: str | None = None
    email: str | None = None
    password: str


class RefreshRequest(_CamelModel):
    refresh_token: str | None = None


class ChangePasswordRequest(_CamelModel):
    old_password: str | None = None
    new_password: str | None = None


class SessionData(_CamelModel):
    user: PublicUser
    access_token: str
    refresh_token: str


def _session_data(issued: IssuedSession) -> SessionData:
    return SessionData(
        user=issued.user,
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[PublicUser],
)
async def register(
    full_name: str | None = Form(default=None, alias="fullName"),
    email: str | None = Form(default=None),
    username: str | None = Form(default=None),
    password: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    cover_image: UploadFile | None = File(default=None, alias="coverImage"),
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[PublicUser]:
    user = await accounts.register_account(
        session,
        full_name=full_name,
        email=email,
        username=username,
        password=password,
        avatar=avatar,
        cover_image=cover_image,
    )
    return ApiResponse.ok(
        user,
        "User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", response_model=ApiResponse[SessionData])
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    config: Settings = Depends(get_settings),
) -> ApiResponse[SessionData]:
    issued = await sessions.login(
        session,
        tokens,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    set_token_cookies(response, issued.access_token, issued.refresh_token, config)
    return ApiResponse.ok(_session_data(issued), "User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict[str, Any]])
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
) -> ApiResponse[dict[str, Any]]:
    await sessions.logout(session, current_user.id)
    clear_token_cookies(response, config)
    return ApiResponse.ok({}, "User logged out")


@router.post("/refreshToken", response_model=ApiResponse[SessionData])
async def refresh_access_token(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    config: Settings = Depends(get_settings),
) -> ApiResponse[SessionData]:
    presented = request.cookies.get(REFRESH_COOKIE) or (
        payload.refresh_token if payload is not None else None
    )
    issued = await sessions.refresh(session, tokens, presented)
    set_token_cookies(response, issued.access_token, issued.refresh_token, config)
    return ApiResponse.ok(_session_data(issued), "Access token refreshed")


@router.post("/change-password", response_model=ApiResponse[dict[str, Any]])
async def change_current_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[dict[str, Any]]:
    await sessions.change_password(
        session,
        current_user.id,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return ApiResponse.ok({}, "Password changed successfully")

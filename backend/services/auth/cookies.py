"""HTTP cookie helpers for auth token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Response

from core import Settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
INSECURE_COOKIE_ENVS = frozenset({"local", "test"})


def cookie_secure(config: Settings) -> bool:
    return (
        config.app_env.strip().lower() not in INSECURE_COOKIE_ENVS
        and not config.allow_insecure_http_cookies
    )


def _max_age(minutes: int) -> int:
    return int(timedelta(minutes=minutes).total_seconds())


def set_token_cookies(
    response: Response,
    access_token: str,
    refresh_token: str,
    config: Settings,
) -> None:
    secure = cookie_secure(config)
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        httponly=True,
        secure=secure,
        samesite=COOKIE_SAMESITE,
        max_age=_max_age(config.access_token_expire_minutes),
        path=COOKIE_PATH,
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=secure,
        samesite=COOKIE_SAMESITE,
        max_age=_max_age(config.refresh_token_expire_minutes),
        path=COOKIE_PATH,
    )


def clear_token_cookies(response: Response, config: Settings) -> None:
    secure = cookie_secure(config)
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key,
            path=COOKIE_PATH,
            secure=secure,
            httponly=True,
            samesite=COOKIE_SAMESITE,
        )

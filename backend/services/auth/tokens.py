"""JWT issuance and verification for access and refresh tokens.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so a leaked access token can never be exchanged for new
credentials and a refresh token is never accepted as proof of identity on
protected routes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any
from uuid import uuid4

import jwt

from core import Settings, settings


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class InvalidTokenError(Exception):
    """Raised when a token fails signature, expiry or type checks."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, config: Settings) -> None:
        self._config = config

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.ACCESS:
            return self._config.access_token_secret
        return self._config.refresh_token_secret

    def ttl(self, kind: TokenKind) -> timedelta:
        if kind is TokenKind.ACCESS:
            return timedelta(minutes=self._config.access_token_expire_minutes)
        return timedelta(minutes=self._config.refresh_token_expire_minutes)

    def _encode(self, kind: TokenKind, subject: str, claims: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            **claims,
            "sub": subject,
            "type": kind.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl(kind)).timestamp()),
        }
        return jwt.encode(payload, self._secret(kind), algorithm=self._config.jwt_algorithm)

    def issue_access_token(self, user_id: str, **claims: Any) -> str:
        return self._encode(TokenKind.ACCESS, user_id, claims)

    def issue_refresh_token(self, user_id: str) -> str:
        # jti keeps tokens issued within the same second distinct.
        return self._encode(TokenKind.REFRESH, user_id, {"jti": uuid4().hex})

    def issue_pair(self, user_id: str, **access_claims: Any) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id, **access_claims),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify(self, token: str, kind: TokenKind) -> dict[str, Any]:
        """Decode ``token`` with the secret for ``kind`` and return its claims."""
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self._config.jwt_algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc

        if payload.get("type") != kind.value:
            raise InvalidTokenError("Unexpected token type")
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Token subject is missing")
        return payload


@lru_cache
def get_token_service() -> TokenService:
    """Return the process-wide token service bound to ``settings``."""
    return TokenService(settings)


__all__ = [
    "InvalidTokenError",
    "TokenKind",
    "TokenPair",
    "TokenService",
    "get_token_service",
]

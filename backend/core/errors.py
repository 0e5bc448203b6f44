"""Typed API errors rendered into the error envelope."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base class for errors raised by handlers and services."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        errors: list[Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=self.default_status, detail=message, headers=headers)
        self.message = message
        self.errors = errors or []


class ValidationError(ApiError):
    """Missing or blank required input."""

    default_status = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ApiError):
    """Bad credentials, missing auth, or an invalid/expired/reused token."""

    default_status = status.HTTP_401_UNAUTHORIZED


class NotFoundError(ApiError):
    default_status = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    """Duplicate username or email."""

    default_status = status.HTTP_409_CONFLICT


class PayloadTooLargeError(ApiError):
    default_status = status.HTTP_413_CONTENT_TOO_LARGE


class InternalError(ApiError):
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


__all__ = [
    "ApiError",
    "ValidationError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "PayloadTooLargeError",
    "InternalError",
]

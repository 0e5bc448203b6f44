"""Response envelopes and the top-level error boundary."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import ApiError

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: ``{statusCode, data, message, success}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: int
    data: DataT
    message: str
    success: bool = True

    @classmethod
    def ok(
        cls,
        data: DataT,
        message: str = "Success",
        status_code: int = status.HTTP_200_OK,
    ) -> "ApiResponse[DataT]":
        return cls(
            status_code=status_code,
            data=data,
            message=message,
            success=status_code < status.HTTP_400_BAD_REQUEST,
        )


class ApiErrorBody(BaseModel):
    """Error envelope: ``{statusCode, message, success, errors}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: int
    message: str
    success: bool = False
    errors: list[Any] = []


def error_response(
    status_code: int,
    message: str,
    errors: list[Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiErrorBody(status_code=status_code, message=message, errors=errors or [])
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True)),
        headers=headers,
    )


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    field_errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field_errors.append(
            {
                "field": ".".join(location),
                "message": str(error.get("msg", "Invalid value")),
            }
        )
    return field_errors


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the standard error envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        errors = exc.errors if isinstance(exc, ApiError) else []
        return error_response(
            exc.status_code,
            str(exc.detail),
            errors=errors,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            errors=_field_errors(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            extra={"path": request.url.path},
            exc_info=exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
        )

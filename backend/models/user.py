"""User domain model."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, func
from sqlmodel import Field, SQLModel

USERNAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 255
FULL_NAME_MAX_LENGTH = 120


class User(SQLModel, table=True):
    """Registered account and its credentials."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    username: str = Field(
        sa_column=Column(String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(EMAIL_MAX_LENGTH), unique=True, nullable=False, index=True)
    )
    full_name: str = Field(
        sa_column=Column(String(FULL_NAME_MAX_LENGTH), nullable=False)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    avatar: str = Field(
        sa_column=Column(String(1024), nullable=False)
    )
    cover_image: str = Field(
        default="", sa_column=Column(String(1024), nullable=False, server_default="")
    )
    # SHA-256 digest of the only refresh token that may still be exchanged.
    refresh_token_hash: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    watch_history: list[Any] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )

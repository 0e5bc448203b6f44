"""Client-facing projections of the user record.

Only the fields declared here are ever serialized. Credentials, the refresh
slot and watch history live on ``User`` but have no counterpart in these
models, so they cannot reach a response even when ``User`` grows new columns.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .user import User


class _View(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PublicUser(_View):
    id: str
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls.model_validate(user)


class PublicChannel(_View):
    username: str
    full_name: str
    avatar: str
    cover_image: str = ""

    @classmethod
    def from_user(cls, user: User) -> "PublicChannel":
        return cls.model_validate(user)

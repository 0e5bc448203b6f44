"""Registration, profile updates and avatar/cover replacement."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from fastapi import UploadFile
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password, settings
from core.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from db.errors import is_unique_violation, violated_column
from models import PublicChannel, PublicUser, User
from models.user import EMAIL_MAX_LENGTH, FULL_NAME_MAX_LENGTH, USERNAME_MAX_LENGTH

from . import storage
from .auth.identity_resolution import (
    email_taken_by_other,
    find_user_by_username,
    normalize_email,
    normalize_username,
    registration_conflict_exists,
)
from .images import UploadTooLargeError, process_image_bytes, read_upload_file

logger = logging.getLogger(__name__)

ImageSlot = Literal["avatar", "cover_image"]

DUPLICATE_ACCOUNT_MESSAGE = "User with email or username already exists"
_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)
_SLOT_FOLDERS: dict[ImageSlot, str] = {"avatar": "avatars", "cover_image": "covers"}
_SLOT_LABELS: dict[ImageSlot, str] = {"avatar": "Avatar", "cover_image": "Cover image"}


def _required(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError("All fields are required")
    return value


def _within_length(value: str, *, field: str, limit: int) -> str:
    if len(value) > limit:
        raise ValidationError(
            f"{field} must be at most {limit} characters",
            errors=[{"field": field, "message": f"at most {limit} characters"}],
        )
    return value


def _validated_email(value: str) -> str:
    normalized = normalize_email(value)
    _within_length(normalized, field="email", limit=EMAIL_MAX_LENGTH)
    try:
        _EMAIL_ADAPTER.validate_python(normalized)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid email address",
            errors=[{"field": "email", "message": "value is not a valid email address"}],
        ) from exc
    return normalized


async def store_image(upload: UploadFile, *, slot: ImageSlot) -> str:
    """Validate, normalise and upload an image; return its durable URL."""
    try:
        data = await read_upload_file(upload, settings.upload_max_bytes)
        processed_bytes, content_type = await asyncio.to_thread(process_image_bytes, data)
    except UploadTooLargeError as exc:
        raise PayloadTooLargeError(str(exc)) from exc
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    try:
        return await asyncio.to_thread(
            storage.upload_bytes,
            processed_bytes,
            folder=_SLOT_FOLDERS[slot],
            content_type=content_type,
        )
    except Exception as exc:
        logger.exception("Media upload failed", extra={"slot": slot})
        raise InternalError(f"Failed to upload {_SLOT_LABELS[slot].lower()}") from exc


async def discard_image(url: str | None) -> None:
    """Best-effort removal of a stored image; failures are logged only."""
    if not url:
        return
    try:
        await asyncio.to_thread(storage.delete_by_url, url)
    except Exception as cleanup_error:
        logger.warning(
            "Failed to cleanup media object",
            extra={"url": url},
            exc_info=cleanup_error,
        )


async def register_account(
    session: AsyncSession,
    *,
    full_name: str | None,
    email: str | None,
    username: str | None,
    password: str | None,
    avatar: UploadFile | None,
    cover_image: UploadFile | None = None,
) -> PublicUser:
    full_name = _required(full_name)
    email = _required(email)
    username = _required(username)
    password = _required(password)

    full_name = _within_length(full_name.strip(), field="fullName", limit=FULL_NAME_MAX_LENGTH)
    normalized_email = _validated_email(email)
    normalized_username = _within_length(
        normalize_username(username), field="username", limit=USERNAME_MAX_LENGTH
    )

    if await registration_conflict_exists(
        session,
        username=normalized_username,
        normalized_email=normalized_email,
    ):
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    if avatar is None:
        raise ValidationError("Avatar file is required")

    avatar_url = await store_image(avatar, slot="avatar")
    cover_url = ""
    if cover_image is not None:
        try:
            cover_url = await store_image(cover_image, slot="cover_image")
        except Exception:
            await discard_image(avatar_url)
            raise

    user = User(
        username=normalized_username,
        email=normalized_email,
        full_name=full_name,
        password_hash=hash_password(password),
        avatar=avatar_url,
        cover_image=cover_url,
    )
    session.add(user)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        await discard_image(avatar_url)
        await discard_image(cover_url)
        if isinstance(exc, IntegrityError) and is_unique_violation(exc):
            logger.info(
                "Registration lost uniqueness race",
                extra={"column": violated_column(exc)},
            )
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from exc
        raise

    created = await session.get(User, user.id, populate_existing=True)
    if created is None:
        raise InternalError("Something went wrong while registering the user")

    logger.info("Registered user", extra={"user_id": created.id})
    return PublicUser.from_user(created)


async def update_account_details(
    session: AsyncSession,
    user: User,
    *,
    full_name: str | None,
    email: str | None,
) -> PublicUser:
    full_name = _required(full_name)
    email = _required(email)

    full_name = _within_length(full_name.strip(), field="fullName", limit=FULL_NAME_MAX_LENGTH)
    normalized_email = _validated_email(email)
    if await email_taken_by_other(session, normalized_email=normalized_email, user_id=user.id):
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    user.full_name = full_name
    user.email = normalized_email
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from exc
        raise
    await session.refresh(user)
    return PublicUser.from_user(user)


async def replace_image(
    session: AsyncSession,
    user: User,
    upload: UploadFile | None,
    *,
    slot: ImageSlot,
) -> PublicUser:
    """Swap the user's avatar or cover image, deleting the previous object."""
    if upload is None:
        raise ValidationError(f"{_SLOT_LABELS[slot]} file is missing")

    previous_url: str = getattr(user, slot)
    new_url = await store_image(upload, slot=slot)

    setattr(user, slot, new_url)
    session.add(user)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        await discard_image(new_url)
        raise InternalError(f"Failed to update {_SLOT_LABELS[slot].lower()}") from exc
    await session.refresh(user)

    if previous_url and previous_url != new_url:
        await discard_image(previous_url)
    return PublicUser.from_user(user)


async def get_channel(session: AsyncSession, username: str) -> PublicChannel:
    user = await find_user_by_username(session, username)
    if user is None:
        raise NotFoundError("Channel does not exist")
    return PublicChannel.from_user(user)

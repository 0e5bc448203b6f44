"""Profile and media endpoints for the authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from api.responses import ApiResponse
from models import PublicChannel, PublicUser, User
from services import accounts

router = APIRouter(tags=["users"])


class UpdateAccountRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str | None = None
    email: str | None = None


@router.api_route("/getUser", methods=["GET", "POST"], response_model=ApiResponse[PublicUser])
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[PublicUser]:
    return ApiResponse.ok(PublicUser.from_user(current_user), "Current user fetched successfully")


@router.api_route("/updateUser", methods=["PATCH", "POST"], response_model=ApiResponse[PublicUser])
async def update_account_details(
    payload: UpdateAccountRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[PublicUser]:
    user = await accounts.update_account_details(
        session,
        current_user,
        full_name=payload.full_name,
        email=payload.email,
    )
    return ApiResponse.ok(user, "Account details updated successfully")


@router.api_route("/updateAvatar", methods=["PATCH", "POST"], response_model=ApiResponse[PublicUser])
async def update_user_avatar(
    avatar: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[PublicUser]:
    user = await accounts.replace_image(session, current_user, avatar, slot="avatar")
    return ApiResponse.ok(user, "Avatar updated successfully")


@router.api_route(
    "/updateCoverImage",
    methods=["PATCH", "POST"],
    response_model=ApiResponse[PublicUser],
)
async def update_user_cover_image(
    cover_image: UploadFile | None = File(default=None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[PublicUser]:
    user = await accounts.replace_image(session, current_user, cover_image, slot="cover_image")
    return ApiResponse.ok(user, "Cover image updated successfully")


@router.get("/getChannel/{username}", response_model=ApiResponse[PublicChannel])
async def get_channel(
    username: str,
    session: AsyncSession = Depends(get_db),
) -> ApiResponse[PublicChannel]:
    channel = await accounts.get_channel(session, username)
    return ApiResponse.ok(channel, "Channel fetched successfully")

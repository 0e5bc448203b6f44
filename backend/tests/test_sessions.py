"""Service-level tests for the refresh slot and session flows."""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password, verify_password
from core.errors import NotFoundError, UnauthorizedError, ValidationError
from models import PublicUser, User
from services.auth import (
    get_token_service,
    hash_refresh_token,
    refresh_token_matches,
    sessions,
    store_refresh_token,
    swap_refresh_token,
)


async def make_user(session: AsyncSession, *, password: str = "Sup3rSecret!") -> User:
    user = User(
        username="carol",
        email="carol@example.com",
        full_name="Carol",
        password_hash=hash_password(password),
        avatar="http://localhost:9000/streamhub-media/avatars/carol.jpg",
    )
    session.add(user)
    await session.commit()
    return user


@pytest.mark.asyncio
async def test_swap_only_succeeds_for_current_token(db_session: AsyncSession):
    user = await make_user(db_session)
    await store_refresh_token(db_session, user.id, "first")
    await db_session.commit()

    assert await swap_refresh_token(db_session, user.id, presented="first", replacement="second")
    # A second caller still holding "first" loses the race.
    assert not await swap_refresh_token(db_session, user.id, presented="first", replacement="third")
    await db_session.commit()

    await db_session.refresh(user)
    assert user.refresh_token_hash == hash_refresh_token("second")
    assert refresh_token_matches(user, "second")
    assert not refresh_token_matches(user, "first")


@pytest.mark.asyncio
async def test_refresh_token_matches_empty_slot(db_session: AsyncSession):
    user = await make_user(db_session)

    assert not refresh_token_matches(user, "anything")


@pytest.mark.asyncio
async def test_login_requires_identifier(db_session: AsyncSession):
    with pytest.raises(ValidationError):
        await sessions.login(
            db_session,
            get_token_service(),
            username="  ",
            email=None,
            password="whatever",
        )


@pytest.mark.asyncio
async def test_login_returns_public_view(db_session: AsyncSession):
    await make_user(db_session)

    issued = await sessions.login(
        db_session,
        get_token_service(),
        username=None,
        email="CAROL@example.com",
        password="Sup3rSecret!",
    )

    assert isinstance(issued.user, PublicUser)
    dumped = issued.user.model_dump(by_alias=True)
    assert dumped["username"] == "carol"
    assert not {"passwordHash", "refreshTokenHash", "watchHistory"} & dumped.keys()


@pytest.mark.asyncio
async def test_refresh_unknown_user(db_session: AsyncSession):
    token = get_token_service().issue_refresh_token("missing-user")

    with pytest.raises(UnauthorizedError) as excinfo:
        await sessions.refresh(db_session, get_token_service(), token)
    assert excinfo.value.message == "Invalid refresh token"


@pytest.mark.asyncio
async def test_logout_then_refresh_fails(db_session: AsyncSession):
    await make_user(db_session)
    tokens = get_token_service()
    issued = await sessions.login(
        db_session, tokens, username="carol", email=None, password="Sup3rSecret!"
    )

    await sessions.logout(db_session, issued.user.id)

    with pytest.raises(UnauthorizedError) as excinfo:
        await sessions.refresh(db_session, tokens, issued.refresh_token)
    assert excinfo.value.message == sessions.REFRESH_REUSED_MESSAGE


@pytest.mark.asyncio
async def test_change_password_unknown_user(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await sessions.change_password(
            db_session, "missing-user", old_password="a", new_password="b"
        )


@pytest.mark.asyncio
async def test_change_password_requires_new_password(db_session: AsyncSession):
    user = await make_user(db_session)

    with pytest.raises(ValidationError):
        await sessions.change_password(
            db_session, user.id, old_password="Sup3rSecret!", new_password=" "
        )


@pytest.mark.asyncio
async def test_change_password_keeps_refresh_slot(db_session: AsyncSession):
    await make_user(db_session)
    tokens = get_token_service()
    issued = await sessions.login(
        db_session, tokens, username="carol", email=None, password="Sup3rSecret!"
    )

    await sessions.change_password(
        db_session, issued.user.id, old_password="Sup3rSecret!", new_password="An0therOne!"
    )

    user = await db_session.get(User, issued.user.id, populate_existing=True)
    assert user is not None
    assert verify_password("An0therOne!", user.password_hash)
    assert refresh_token_matches(user, issued.refresh_token)


@pytest.mark.asyncio
async def test_concurrent_refresh_with_same_token(db_session: AsyncSession, session_maker):
    await make_user(db_session)
    tokens = get_token_service()
    issued = await sessions.login(
        db_session, tokens, username="carol", email=None, password="Sup3rSecret!"
    )

    async with session_maker() as first, session_maker() as second:
        results = await asyncio.gather(
            sessions.refresh(first, tokens, issued.refresh_token),
            sessions.refresh(second, tokens, issued.refresh_token),
            return_exceptions=True,
        )

    winners = [result for result in results if isinstance(result, sessions.IssuedSession)]
    losers = [result for result in results if isinstance(result, UnauthorizedError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].message == sessions.REFRESH_REUSED_MESSAGE


@pytest.mark.asyncio
async def test_refresh_losing_rotation_race_is_unauthorized(db_session: AsyncSession, session_maker):
    await make_user(db_session)
    tokens = get_token_service()
    issued = await sessions.login(
        db_session, tokens, username="carol", email=None, password="Sup3rSecret!"
    )

    async with session_maker() as stale:
        # Load the record while the presented token is still current.
        await stale.get(User, issued.user.id)

        async with session_maker() as winner:
            await sessions.refresh(winner, tokens, issued.refresh_token)

        with pytest.raises(UnauthorizedError) as excinfo:
            await sessions.refresh(stale, tokens, issued.refresh_token)

    assert excinfo.value.message == sessions.REFRESH_REUSED_MESSAGE

"""Async engine and session factory."""

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core import settings

async_engine = create_async_engine(
    settings.resolved_database_url(),
    pool_pre_ping=True,
)
AsyncSessionMaker = async_sessionmaker(async_engine, expire_on_commit=False)

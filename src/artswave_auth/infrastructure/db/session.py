"""Async SQLAlchemy session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the provided database URL."""

    engine = create_async_engine(database_url, pool_pre_ping=True)
    return async_sessionmaker(engine, expire_on_commit=False)


async def dispose_session_factory(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Close every pooled connection held by the factory's engine."""

    engine = session_factory.kw.get("bind")
    if engine is not None:
        await engine.dispose()

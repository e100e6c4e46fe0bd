"""FastAPI dependencies for database sessions and the acting user."""
from typing import AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from subscriptions.config import settings
from subscriptions.database import AsyncSessionLocal, transaction_scope


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for routes that run their own transactions."""
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with transaction_scope(session_factory) as session:
        yield session


async def get_actor(x_actor: str | None = Header(default=None)) -> str:
    """
    Username recorded in created_by/last_modified_by.

    Callers are authenticated upstream and pass their username in the
    ``X-Actor`` header; requests without one are attributed to the configured
    default actor.
    """
    return x_actor or settings.default_actor

"""Async database engine and session management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from together.config import settings
from together.services.errors import StorageError


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite drivers use their own pool classes and reject sizing options
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
    }


engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=False,
    **_engine_options(settings.database_url),
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory used by stores that open their own sessions."""
    return async_session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with async_session_factory() as session:
        yield session


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()


@asynccontextmanager
async def bounded_session(
    session_factory: async_sessionmaker[AsyncSession],
    timeout: float,
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session whose whole use is bounded by ``timeout`` seconds.

    Timeouts and driver errors are re-raised as ``StorageError``.
    """
    try:
        async with asyncio.timeout(timeout):
            async with session_factory() as session:
                yield session
    except TimeoutError as e:
        raise StorageError(f"Database call timed out after {timeout}s") from e
    except SQLAlchemyError as e:
        raise StorageError(f"Database call failed: {e}") from e

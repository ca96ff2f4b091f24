"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
Request handlers get a session through the get_db dependency; deferred
tasks, which run outside any request, open their own with session_scope.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings


# WHY: pool_pre_ping recycles stale connections, preventing
# "server has gone away" errors in long-running applications.
engine = create_async_engine(
    settings.async_database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# WHY: expire_on_commit=False prevents lazy-loading issues after commit.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    The request's work is committed once the handler returns and rolled
    back if it raises.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def session_scope(session_factory=AsyncSessionLocal) -> AsyncIterator[AsyncSession]:
    """
    Transactional scope for work outside a request.

    Args:
        session_factory: Factory to open the session with

    Yields:
        AsyncSession committed on success, rolled back on error
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

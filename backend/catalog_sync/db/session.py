"""
Async database session management using SQLAlchemy 2.0.
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog_sync.core.config import get_settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Create the async engine on first use.

    Created lazily so importing the package never needs a reachable database.
    """
    settings = get_settings()
    url = settings.async_database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.app_debug)
    return create_async_engine(
        url,
        echo=settings.app_debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for the application engine."""
    return create_session_maker(get_async_engine())

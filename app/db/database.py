"""
Async SQLAlchemy setup for the database-backed review cache.

The engine is built on demand so that the file backend never needs a database
driver installed.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base

from app.core.config import settings

# Base class for all models
Base = declarative_base()


def build_engine(database_url: str = None) -> AsyncEngine:
    """
    Create an async engine for the given URL (defaults to settings.DATABASE_URL).
    """
    url = database_url or settings.DATABASE_URL
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create cache tables if they do not exist.
    Called on application startup when STORE_BACKEND=database.
    """
    async with engine.begin() as conn:
        # Import models so they are registered on Base.metadata
        from app.models import review_cache  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of pooled connections on shutdown."""
    await engine.dispose()

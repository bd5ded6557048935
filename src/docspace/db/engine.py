"""Async SQLAlchemy engine and session creation."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from docspace.config import settings


def create_db_engine(url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    SQLite does not support pool_size / max_overflow, so pooling options are
    only applied to server databases.
    """
    db_url = url or settings.effective_database_url
    engine_kwargs: dict = {"echo": False}
    if "sqlite" not in db_url:
        engine_kwargs.update(pool_size=10, max_overflow=20, pool_pre_ping=True)
    return create_async_engine(db_url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create every registered table (local mode and tests; no migrations)."""
    from docspace.db.base import Base
    import docspace.db.models  # noqa: F401 - register all ORM models

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop every registered table."""
    from docspace.db.base import Base
    import docspace.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

"""
Database configuration and session management.
Uses the SQLAlchemy async engine (PostgreSQL via asyncpg in production).
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from expense_ai.models.base import Base


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.
    Pool sizing only applies to server databases; SQLite pools reject it.
    """
    options = {
        "echo": False,  # Disable SQLAlchemy query logging
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    return create_async_engine(database_url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine):
    """
    Initialize database: create tables.
    Called once at application startup.
    """
    from expense_ai.models.ai_config import AIConfig  # noqa: F401 - registers the table

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

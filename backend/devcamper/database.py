"""
DevCamper Backend: Database Session Management
================================================

What:  Async SQLAlchemy engine/session factory builders and the per-request
       session dependency.
How:   The application lifespan builds one engine and one session factory and
       keeps them on `app.state`. `get_db_session` opens a session per request
       that commits on success and rolls back on error. Nothing here is a
       module-level connection; every component receives its session handle
       explicitly.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping=True, pool_recycle=3600.
    SQLite URLs (tests, local runs) use SQLAlchemy's default pool instead.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from devcamper.config import Settings, settings as default_settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they share one metadata object
    (used by Alembic autogenerate and by `create_all` in tests).
    """
    pass


def build_engine(config: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Pool sizing only applies to server databases; SQLite drivers reject the
    queue-pool arguments.
    """
    config = config or default_settings
    kwargs = {"echo": config.log_level == "DEBUG"}
    if not config.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False: attributes stay readable after commit, so
    handlers can serialize records outside the transaction.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the factory stored on app.state
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns the connection to the pool)

    Example usage in a route:
        @router.get("/bootcamps/{bootcamp_id}")
        async def get_bootcamp(bootcamp_id: UUID, db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()

"""
Database Session Management
===========================

Async SQLAlchemy engine and session factory for the PostgreSQL document
store that holds user profiles and saved specifications.

Connection Pattern:
-------------------
Each HTTP request gets its own session via FastAPI's dependency injection
(get_db). The session commits when the request succeeds and rolls back
when it raises, so route handlers never call commit themselves.

Reads issued after a write in the same session observe that write, which
is the only consistency the application relies on. Writes from different
sessions are last-writer-wins, except the usage counter, which is only
ever changed with single-statement atomic updates.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool
from specforge.config import settings
from specforge.db.base import Base

pool_config = (
    {"poolclass": AsyncAdaptedQueuePool, "pool_size": 5, "max_overflow": 10}
    if settings.is_production
    else {"pool_size": 2, "max_overflow": 5}
)

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_recycle=3600,
    connect_args={"command_timeout": 60},
    **pool_config,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Usage in routes:
        @router.get("/specs")
        async def list_specs(db: AsyncSession = Depends(get_db)):
            ...

    Transaction Behavior:
    - Session is created at request start
    - Auto-commits on successful request completion
    - Auto-rollbacks on any exception
    - Session is closed after request
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create all tables defined in the models if they don't exist.

    Called on application startup and by ``specforge init-db``.
    """
    import specforge.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the connection pool on shutdown."""
    await engine.dispose()

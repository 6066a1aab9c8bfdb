"""
Database engine and session management
"""

from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lingopal.core.config import settings
from lingopal.core.logging import get_logger
from lingopal.models.base import Base

logger = get_logger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool options suited to the backend"""
    if make_url(database_url).get_backend_name() == "sqlite":
        # Writers on the same file queue on the busy timeout instead of failing
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": settings.db_sqlite_timeout},
        )

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.db_echo)
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request"""
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(bind: AsyncEngine) -> None:
    """Create all tables. Production schemas are managed by alembic."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db.tables_created", tables=sorted(Base.metadata.tables))


async def close_db_connection() -> None:
    await engine.dispose()

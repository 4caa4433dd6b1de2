"""
Database engine, session factory and FastAPI session dependency
"""
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models"""


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine

    Postgres URLs are normalized to the asyncpg driver. Pool sizing only
    applies to server databases; SQLite keeps the dialect defaults.
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", database_url, count=1)

    options = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )
    options.update(kwargs)

    return create_async_engine(url, **options)


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def session_scope(factory: Optional[async_sessionmaker] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    One unit of work: commit when the block exits cleanly, roll back on error

    Services commit their own changes; the final commit here persists
    anything that was only flushed.
    """
    async with (factory or AsyncSessionLocal)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a database session per request"""
    async with session_scope() as session:
        yield session


async def init_db():
    """Create all tables (development and tests; production uses migrations)"""
    # Import models so they are registered on the metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def close_db():
    """Dispose the engine connection pool"""
    await engine.dispose()
    logger.info("Database engine disposed")

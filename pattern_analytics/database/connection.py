"""
Database connection management for the clinical read model.
"""

import os
import logging
import pathlib
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """Get database URL from environment or use default."""
    db_url = os.getenv("DATABASE_URL")

    if db_url:
        # Convert postgresql:// to postgresql+asyncpg:// for async
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return db_url

    # Default to SQLite for development
    db_path = pathlib.Path(__file__).parent.parent.parent / "pattern_analytics.db"
    return f"sqlite+aiosqlite:///{db_path}"


def is_initialized() -> bool:
    return _session_factory is not None


async def init_database(db_url: Optional[str] = None, create_tables: bool = True) -> None:
    """Initialize the async engine and session factory."""
    global _engine, _session_factory

    db_url = db_url or get_database_url()
    logger.info(
        "Initializing database connection: %s",
        db_url.split("@")[-1] if "@" in db_url else db_url,
    )

    engine_kwargs = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }
    if not db_url.startswith("sqlite"):
        engine_kwargs.update(pool_size=10, max_overflow=20)

    _engine = create_async_engine(db_url, **engine_kwargs)

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    if create_tables:
        # Imported here to avoid a circular import
        from .models import Base
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized successfully")


async def close_database() -> None:
    """Close database connections."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        logger.info("Database connection closed")
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session context manager."""
    if not _session_factory:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

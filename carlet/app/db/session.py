"""
Database session configuration.

This module owns the async SQLAlchemy engine and session factory. The
engine is built from settings when the application starts and disposed
when it stops; nothing connects at import time.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from starlette.requests import Request
from carlet.app.core.config import Settings

logger = logging.getLogger("carlet.db")

# Create declarative base for models
Base = declarative_base()


class Database:
    """
    Engine plus session factory for one running application.
    
    Usage:
        database = Database.from_settings(settings)
        await database.create_all()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "Database":
        engine_kwargs = {"echo": config.db_echo, "future": True}
        if not config.database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_pre_ping=True,
            )
        return cls(create_async_engine(config.database_url, **engine_kwargs))

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        """Create tables for every model registered on ``Base``."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db(request: Request):
    """
    FastAPI dependency for database sessions.
    
    Yields an async database session and ensures it's properly closed.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()


def utcnow() -> datetime:
    """Timezone-aware current time used for every timestamp column."""
    return datetime.now(timezone.utc)

# This project was developed with assistance from AI tools.
"""Async database engine, session factory, and FastAPI dependencies."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import db_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


class DatabaseService:
    """Connection health checks for the health endpoint."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def health_check(self) -> dict:
        """Run a trivial query and report the server version."""
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text("SELECT version()"))
                version = result.scalar() or ""
            return {
                "name": "Database",
                "status": "healthy",
                "message": version.split(" on ")[0] or "PostgreSQL",
            }
        except Exception as exc:
            logger.warning("Database health check failed: %s", exc)
            return {
                "name": "Database",
                "status": "unhealthy",
                "message": f"PostgreSQL unavailable: {exc.__class__.__name__}",
            }


db_service = DatabaseService(engine=engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yield a session, rolling back on error."""
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_db_service() -> DatabaseService:
    """FastAPI dependency: return the shared DatabaseService."""
    return db_service

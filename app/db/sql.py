# app/db/sql.py
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.db.base import Base

logger = logging.getLogger(__name__)


def _engine_kwargs(dsn: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    # SQLite (tests, local demos) does not use a QueuePool
    if not dsn.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return kwargs


engine = create_async_engine(settings.SQL_DSN, **_engine_kwargs(settings.SQL_DSN))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commits when the handler returns, rolls back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.warning("Request transaction rolled back")
            raise


async def init_db(drop: bool = False) -> None:
    """
    Create all tables (and optionally drop them first).
    Alembic is the normal path; this is for local development.
    """
    # Import all models here so they get registered on Base.metadata
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (drop=%s)", drop)

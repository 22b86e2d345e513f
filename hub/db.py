"""SQLAlchemy 2.x async database setup.

This module defines the async engine and session factory but does not
hard-code any connection credentials.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)


engine: AsyncEngine = create_async_engine(settings.db.url, echo=settings.db.echo, future=True)

AsyncSessionMaker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI-friendly async session dependency.

    Usage:
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """

    async with AsyncSessionMaker() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None, *, drop: bool = False) -> list[str]:
    """Create all tables that do not exist yet, optionally dropping them first.

    Returns the names of the tables known to the metadata.
    """
    bind = bind or engine
    async with bind.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Dropped existing tables")
        await conn.run_sync(Base.metadata.create_all)
    tables = list(Base.metadata.tables.keys())
    logger.info(f"Database schema ready: {', '.join(tables)}")
    return tables

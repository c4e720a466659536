"""
Engine and session lifecycle.

The FastAPI lifespan calls init_engine() once at startup and dispose_engine() at
shutdown. Route handlers get a session from get_db(); services never open their
own, they take the AsyncSession they are handed.
Sessions keep attributes loaded after commit (expire_on_commit=False) so response
building never triggers a lazy load outside the event loop.
"""
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    pass


def init_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Build the engine and sessionmaker. A second call returns the existing engine."""
    global _engine, _sessionmaker
    if _engine is not None:
        return _engine

    from waitlistpro.config import get_settings
    settings = get_settings()
    url = database_url or settings.database_url

    # SQLite (tests, local runs) has no connection pool to size
    pool_options = {}
    if not url.startswith("sqlite"):
        pool_options = {
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_pre_ping": True,
        }

    _engine = create_async_engine(url, echo=False, **pool_options)
    _sessionmaker = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("Database engine ready (%s)", url.split("://", 1)[0])
    return _engine


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessionmaker = None
    logger.info("Database engine closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: committed when the handler returns, rolled back if it raises."""
    if _sessionmaker is None:
        init_engine()
    async with _sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug("Rolling back request session: %s", str(e))
            await session.rollback()
            raise

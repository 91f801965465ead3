"""Database connection and session management for the durable store + Redis."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mastery_engine.shared.config import get_settings

logger = logging.getLogger(__name__)


# ===================
# SQLAlchemy Base
# ===================


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# ===================
# SQL database
# ===================

_engines: dict[int, AsyncEngine] = {}
_session_factories: dict[int, async_sessionmaker[AsyncSession]] = {}


def _get_loop_id() -> int:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return 0


def _engine_options() -> dict:
    settings = get_settings()
    if settings.is_sqlite:
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def get_engine() -> AsyncEngine:
    """Engine for the running event loop; asyncpg and aiosqlite connections are loop bound."""
    loop_id = _get_loop_id()
    engine = _engines.get(loop_id)
    if engine is None:
        engine = create_async_engine(get_settings().database_url, echo=False, **_engine_options())
        _engines[loop_id] = engine
        logger.debug(f"Created store engine for loop {loop_id}")
    return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    loop_id = _get_loop_id()
    factory = _session_factories.get(loop_id)
    if factory is None:
        # Store records are rebuilt from rows after commit
        factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
        _session_factories[loop_id] = factory
    return factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session committed when the block exits cleanly, rolled back otherwise."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the store tables if they do not exist."""
    import mastery_engine.modules.store.models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose every per-loop engine."""
    for engine in list(_engines.values()):
        await engine.dispose()
    _engines.clear()
    _session_factories.clear()


# ===================
# Redis
# ===================

_redis_pool: redis.ConnectionPool | None = None


async def get_redis() -> redis.Redis:
    """Redis client on a shared pool, used by the pub/sub notification sink."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            get_settings().redis_url,
            decode_responses=True,
        )
    return redis.Redis(connection_pool=_redis_pool)


async def close_redis() -> None:
    """Release the Redis pool if one was opened."""
    global _redis_pool
    if _redis_pool is not None:
        try:
            await _redis_pool.aclose()
        except Exception as e:
            logger.warning(f"Error closing Redis pool: {e}")
        finally:
            _redis_pool = None


# ===================
# Lifecycle Helpers
# ===================


async def shutdown() -> None:
    """Close all connections on application shutdown."""
    await close_db()
    await close_redis()
    logger.info("All store connections closed")

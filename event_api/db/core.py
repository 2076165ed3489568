"""Connection pool management for the document store."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import psycopg
from psycopg_pool import AsyncConnectionPool

from event_api.config import get_settings

_logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


def _get_dsn() -> str:
    return get_settings().postgres.get_dsn()


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return
    settings = get_settings().postgres
    _pool = AsyncConnectionPool(
        settings.get_dsn(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout,
        max_lifetime=settings.pool_max_lifetime,
        max_idle=settings.pool_max_idle,
        reconnect_timeout=settings.pool_reconnect_timeout,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await _pool.open()
    _logger.info(
        "Document store pool initialized (min=%d, max=%d, timeout=%ds)",
        settings.pool_min_size,
        settings.pool_max_size,
        settings.pool_timeout,
    )
    # Import here to avoid circular imports
    from event_api.db.schema import ensure_schema

    await ensure_schema()


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        _logger.info("Document store pool closed")


@asynccontextmanager
async def _get_connection() -> AsyncIterator[psycopg.AsyncConnection]:
    """Yield an autocommit connection; use ``conn.transaction()`` for atomic work."""
    if _pool is not None:
        async with _pool.connection() as conn:
            await conn.set_autocommit(True)
            yield conn
    else:
        async with await psycopg.AsyncConnection.connect(_get_dsn(), autocommit=True) as conn:
            yield conn


def get_pool() -> AsyncConnectionPool | None:
    return _pool


async def ping() -> bool:
    """Check that the store answers a trivial query."""
    try:
        async with _get_connection() as conn:
            await conn.execute("SELECT 1")
        return True
    except psycopg.Error as e:
        _logger.warning("Document store ping failed: %s", e)
        return False


__all__ = [
    "_get_connection",
    "close_pool",
    "get_pool",
    "init_pool",
    "ping",
]

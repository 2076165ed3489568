"""Application startup and shutdown.

``setup_resources`` opens the document store pool and, when notifications
are enabled, the Redis client behind the event bus. ``cleanup_resources``
releases whatever was opened and clears the global state.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import FastAPI
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from event_api import db, state
from event_api.bus import EventBus
from event_api.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    event_bus: EventBus | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis:
    """Create a Redis client over a blocking connection pool."""
    settings = get_settings().redis
    redis_pool = RedisConnectionPool(
        host=settings.host,
        port=settings.port,
        password=settings.password if settings.password else None,
        max_connections=settings.max_connections,
        timeout=settings.pool_timeout_sec,
        health_check_interval=settings.health_check_interval,
        socket_timeout=settings.socket_timeout,
        socket_connect_timeout=settings.socket_connect_timeout,
        retry_on_timeout=settings.retry_on_timeout,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=redis_pool)


async def init_database() -> bool:
    """Open the document store pool and run migrations.

    Returns:
        True if the store is ready, False if disabled or unreachable.
    """
    if not get_settings().features.database:
        logger.info("Document store disabled by configuration")
        return False
    try:
        await db.init_pool()
    except Exception as e:
        logger.error("Failed to initialize document store: %s", e)
        return False
    return True


async def setup_resources() -> LifespanResources:
    resources = LifespanResources()

    if get_settings().features.notifications:
        resources.redis_client = await init_redis()
        resources.event_bus = EventBus(resources.redis_client)

    resources.db_enabled = await init_database()

    state.redis_client = resources.redis_client
    state.event_bus = resources.event_bus
    state.db_enabled = resources.db_enabled
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.db_enabled:
        await db.close_pool()

    if resources.redis_client:
        await resources.redis_client.aclose()

    state.redis_client = None
    state.event_bus = None
    state.db_enabled = False


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)

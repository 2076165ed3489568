"""Dependency injection for FastAPI endpoints.

Usage in controllers:
    from event_api.dependencies import OptionalBus, require_store

    router = APIRouter(dependencies=[Depends(require_store)])

    @router.post("/things")
    async def create(bus: OptionalBus):
        ...
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from event_api import state
from event_api.bus import EventBus
from event_api.errors import ServiceUnavailableError


def require_store() -> None:
    """Guard for routes that need the document store.

    Raises:
        ServiceUnavailableError: If the store was not initialized at startup.
    """
    if not state.db_enabled:
        raise ServiceUnavailableError(detail="Document store not initialized")


def get_optional_redis() -> redis.Redis | None:
    return state.redis_client


def get_optional_event_bus() -> EventBus | None:
    """Get the EventBus if notifications are enabled, or None."""
    return state.event_bus


OptionalRedis = Annotated[redis.Redis | None, Depends(get_optional_redis)]
OptionalBus = Annotated[EventBus | None, Depends(get_optional_event_bus)]

from fastapi import APIRouter
from redis.exceptions import RedisError

from event_api import db, state
from event_api.dependencies import OptionalRedis

router = APIRouter()


@router.get("/health")
async def health(redis_client: OptionalRedis) -> dict[str, str]:
    redis_status = "disabled"
    if redis_client is not None:
        try:
            await redis_client.ping()
            redis_status = "healthy"
        except RedisError:
            redis_status = "unhealthy"

    db_status = "disabled"
    if state.db_enabled:
        db_status = "healthy" if await db.ping() else "unhealthy"

    return {"status": "ok", "database": db_status, "redis": redis_status}

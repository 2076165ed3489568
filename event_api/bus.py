"""
Change notifications for stored resources, backed by Redis pub/sub.
"""
import json
from typing import Any, Final, Literal

import redis.asyncio as redis

CHANNEL_EVENTS: Final[str] = "events"

ChangeKind = Literal["save", "remove"]


class EventBus:
    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    @staticmethod
    def message(kind: ChangeKind, entity: dict[str, Any]) -> str:
        return json.dumps({"type": f"event:{kind}", "event": entity})

    async def publish_resource(self, kind: ChangeKind, entity: dict[str, Any]) -> None:
        await self.redis_client.publish(CHANNEL_EVENTS, self.message(kind, entity))

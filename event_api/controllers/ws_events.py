import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from event_api import state
from event_api.bus import CHANNEL_EVENTS

router = APIRouter()
logger = logging.getLogger("event_api.ws.events")

HEARTBEAT_SEC = 25


@router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket):
    """Relay event:save / event:remove notifications to the client."""
    if state.redis_client is None:
        await websocket.close(code=1013)
        return
    await websocket.accept()

    pubsub = state.redis_client.pubsub()
    await pubsub.subscribe(CHANNEL_EVENTS)

    async def send_updates():
        async for message in pubsub.listen():
            if message["type"] == "message":
                await websocket.send_text(message["data"])

    async def heartbeat():
        while True:
            await asyncio.sleep(HEARTBEAT_SEC)
            await websocket.send_text(json.dumps({"type": "ping"}))

    update_task = asyncio.create_task(send_updates())
    heartbeat_task = asyncio.create_task(heartbeat())

    try:
        # Clients only listen; incoming frames are read to detect disconnects.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("ws_events.disconnect")
    finally:
        update_task.cancel()
        heartbeat_task.cancel()
        await pubsub.unsubscribe(CHANNEL_EVENTS)
        await pubsub.aclose()

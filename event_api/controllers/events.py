"""
Resourceful endpoints for events.

GET     /api/events                      ->  index
POST    /api/events                      ->  create
GET     /api/events/{id}                 ->  show
PUT     /api/events/{id}                 ->  upsert
PATCH   /api/events/{id}                 ->  patch
DELETE  /api/events/{id}                 ->  destroy
GET     /api/events/search/{text}        ->  search
GET     /api/events/hosting/{host}       ->  hosting
GET     /api/events/going/{participant}  ->  going
GET     /api/events/favorite/{user}      ->  favorite

Every handler is fetch -> guard not found -> mutate -> respond and ends in
exactly one of 2xx, 404 (empty body) or 500 (error body).
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, Response
from redis.exceptions import RedisError

from event_api import db
from event_api.bus import ChangeKind, EventBus
from event_api.dependencies import OptionalBus, require_store
from event_api.errors import error_body
from event_api.models.events import ID_FIELD, omit_identifier
from event_api.patch import apply_patch
from event_api.populate import HOST, PARTICIPANT_USERS, populate

logger = logging.getLogger("event_api.events")
router = APIRouter(prefix="/api/events", tags=["events"], dependencies=[Depends(require_store)])


def respond_with_result(entity: Any, status_code: int = 200) -> JSONResponse | None:
    if entity is None:
        return None
    return JSONResponse(status_code=status_code, content=entity)


def entity_not_found(event_id: str) -> Response:
    logger.warning("Event not found: %s", event_id)
    return Response(status_code=404)


def handle_error(exc: Exception, status_code: int = 500) -> JSONResponse:
    logger.error("Event operation failed: %r", exc, exc_info=exc)
    return JSONResponse(status_code=status_code, content=error_body(exc))


def patch_updates(operations: Any):
    """Build the mutation ``db.events_modify`` runs on the locked document."""

    def apply(doc: dict[str, Any]) -> Any:
        return apply_patch(doc, operations, protected=ID_FIELD)

    return apply


async def remove_entity(entity: dict[str, Any], bus: EventBus | None) -> Response:
    await db.events_remove(entity[ID_FIELD])
    await notify(bus, "remove", entity)
    return Response(status_code=204)


async def notify(bus: EventBus | None, kind: ChangeKind, entity: dict[str, Any]) -> None:
    if bus is None:
        return
    try:
        await bus.publish_resource(kind, entity)
    except RedisError as e:
        logger.warning("Failed to publish event:%s for %s: %s", kind, entity[ID_FIELD], e)


@router.get("")
async def index() -> Response:
    logger.info("GET /api/events")
    try:
        events = await db.events_find()
        return respond_with_result(await populate(events, HOST))
    except Exception as e:
        return handle_error(e)


@router.get("/search/{text:path}")
async def search(text: str) -> Response:
    logger.info("GET /api/events/search/%s", text)
    try:
        events = await db.events_find(name_pattern=text)
        return respond_with_result(await populate(events, HOST))
    except Exception as e:
        return handle_error(e)


@router.get("/hosting/{host}")
async def hosting(host: str) -> Response:
    logger.info("GET /api/events/hosting/%s", host)
    try:
        events = await db.events_find(host=host)
        return respond_with_result(await populate(events, HOST))
    except Exception as e:
        return handle_error(e)


@router.get("/going/{participant}")
async def going(participant: str) -> Response:
    logger.info("GET /api/events/going/%s", participant)
    try:
        events = await db.events_find(participant=participant)
        return respond_with_result(await populate(events, HOST))
    except Exception as e:
        return handle_error(e)


@router.get("/favorite/{user}")
async def favorite(user: str) -> Response:
    logger.info("GET /api/events/favorite/%s", user)
    try:
        events = await db.events_find(favorited_by=user)
        return respond_with_result(await populate(events, HOST))
    except Exception as e:
        return handle_error(e)


@router.get("/{event_id}")
async def show(event_id: str) -> Response:
    logger.info("GET /api/events/%s", event_id)
    try:
        entity = await db.events_find_by_id(event_id)
        if entity is None:
            return entity_not_found(event_id)
        [entity] = await populate([entity], HOST, PARTICIPANT_USERS)
        return respond_with_result(entity)
    except Exception as e:
        return handle_error(e)


@router.post("")
async def create(bus: OptionalBus, body: Any = Body(...)) -> Response:
    logger.info("POST /api/events")
    try:
        entity = await db.events_create(body)
    except Exception as e:
        return handle_error(e)
    logger.info("Created event id=%s", entity[ID_FIELD])
    await notify(bus, "save", entity)
    return respond_with_result(entity, 201)


@router.put("/{event_id}")
async def upsert(event_id: str, bus: OptionalBus, body: Any = Body(...)) -> Response:
    logger.info("PUT /api/events/%s", event_id)
    try:
        if not isinstance(body, dict):
            raise TypeError("Update body must be a JSON object")
        entity = await db.events_find_one_and_update(event_id, omit_identifier(body))
    except Exception as e:
        return handle_error(e)
    await notify(bus, "save", entity)
    return respond_with_result(entity)


@router.patch("/{event_id}")
async def patch(event_id: str, bus: OptionalBus, body: Any = Body(...)) -> Response:
    logger.info("PATCH /api/events/%s", event_id)
    try:
        entity = await db.events_modify(event_id, patch_updates(body))
    except Exception as e:
        return handle_error(e)
    if entity is None:
        return entity_not_found(event_id)
    await notify(bus, "save", entity)
    return respond_with_result(entity)


@router.delete("/{event_id}")
async def destroy(event_id: str, bus: OptionalBus) -> Response:
    logger.info("DELETE /api/events/%s", event_id)
    try:
        entity = await db.events_find_by_id(event_id)
        if entity is None:
            return entity_not_found(event_id)
        return await remove_entity(entity, bus)
    except Exception as e:
        return handle_error(e)

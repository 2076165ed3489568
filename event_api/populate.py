"""Reference expansion: replace stored user ids with user projections.

All ids referenced by the given paths, across every entity, are fetched
in a single query and spliced in place. An id with no matching user
becomes ``None``.
"""

from typing import Any, Final

from event_api import db

HOST: Final[str] = "host"
PARTICIPANT_USERS: Final[str] = "participants.user"


def _references(entity: dict[str, Any], path: str) -> list[Any]:
    if path == HOST:
        return [entity.get("host")]
    if path == PARTICIPANT_USERS:
        return [p.get("user") for p in entity.get("participants") or [] if isinstance(p, dict)]
    raise ValueError(f"unknown reference path: {path}")


def _splice(entity: dict[str, Any], path: str, users: dict[str, dict[str, Any]]) -> None:
    if path == HOST:
        if entity.get("host") is not None:
            entity["host"] = users.get(entity["host"])
        return
    for participant in entity.get("participants") or []:
        if isinstance(participant, dict) and participant.get("user") is not None:
            participant["user"] = users.get(participant["user"])


async def populate(entities: list[dict[str, Any]], *paths: str) -> list[dict[str, Any]]:
    """Expand ``paths`` on every entity in place and return the entities."""
    ids = {
        ref
        for entity in entities
        for path in paths
        for ref in _references(entity, path)
        if isinstance(ref, str)
    }
    if not ids:
        return entities
    users = await db.users_fetch_projections(sorted(ids))
    for entity in entities:
        for path in paths:
            _splice(entity, path, users)
    return entities

"""Event collection: one JSONB document per row, keyed by a generated id."""

import logging
import secrets
from collections.abc import Callable
from typing import Any

from psycopg import errors as pg_errors
from psycopg.types.json import Json

from event_api.db.core import _get_connection
from event_api.models.events import omit_identifier, to_entity, validate_document

logger = logging.getLogger(__name__)

Entity = dict[str, Any]


def _generate_event_id() -> str:
    # Same shape as a document-database object id: 12 random bytes as hex.
    return secrets.token_hex(12)


async def events_find(
    *,
    name_pattern: str | None = None,
    host: str | None = None,
    participant: str | None = None,
    favorited_by: str | None = None,
) -> list[Entity]:
    """Return events matching every given filter, oldest first.

    ``name_pattern`` is a case-insensitive regular expression matched
    anywhere in the name.
    """
    clauses: list[str] = []
    params: list[Any] = []
    if name_pattern is not None:
        clauses.append("doc->>'name' ~* %s")
        params.append(name_pattern)
    if host is not None:
        clauses.append("doc->>'host' = %s")
        params.append(host)
    if participant is not None:
        clauses.append("doc @> %s")
        params.append(Json({"participants": [{"user": participant}]}))
    if favorited_by is not None:
        clauses.append("doc @> %s")
        params.append(Json({"favoritesBy": [favorited_by]}))
    where = " AND ".join(clauses) if clauses else "TRUE"
    sql = f"SELECT id, doc FROM events WHERE {where} ORDER BY created_at, id"
    async with _get_connection() as conn:
        rows = await conn.execute(sql, tuple(params))
        return [to_entity(event_id, doc) async for event_id, doc in rows]


async def events_find_by_id(event_id: str) -> Entity | None:
    async with _get_connection() as conn:
        row = await (
            await conn.execute("SELECT id, doc FROM events WHERE id = %s", (event_id,))
        ).fetchone()
        if not row:
            return None
        return to_entity(row[0], row[1])


async def events_create(fields: Any) -> Entity:
    """Validate ``fields`` and insert them as a new event.

    Raises:
        pydantic.ValidationError: If the fields do not satisfy the schema.
    """
    doc = validate_document(fields)
    async with _get_connection() as conn:
        for _ in range(10):
            event_id = _generate_event_id()
            try:
                await conn.execute(
                    "INSERT INTO events (id, doc) VALUES (%s, %s)",
                    (event_id, Json(doc)),
                )
                return to_entity(event_id, doc)
            except pg_errors.UniqueViolation:
                continue
        raise RuntimeError("Failed to generate unique event ID")


async def events_find_one_and_update(event_id: str, update: dict[str, Any]) -> Entity:
    """Upsert: overwrite the given top-level fields, inserting if absent.

    The merged document is validated as a whole, so an insert gets the
    schema defaults and must still satisfy required fields.
    """
    async with _get_connection() as conn:
        async with conn.transaction():
            row = await (
                await conn.execute("SELECT doc FROM events WHERE id = %s FOR UPDATE", (event_id,))
            ).fetchone()
            existing = row[0] if row else {}
            doc = validate_document({**existing, **omit_identifier(update)})
            await conn.execute(
                """INSERT INTO events (id, doc) VALUES (%s, %s)
                   ON CONFLICT (id) DO UPDATE SET doc = EXCLUDED.doc, updated_at = NOW()""",
                (event_id, Json(doc)),
            )
    if not row:
        logger.info("Upsert inserted event id=%s", event_id)
    return to_entity(event_id, doc)


async def events_modify(
    event_id: str, mutate: Callable[[dict[str, Any]], Any]
) -> Entity | None:
    """Read, mutate and save one event under a row lock.

    ``mutate`` receives the stored fields and returns the new fields. If it
    raises, or the result fails validation, nothing is written. Returns
    ``None`` when the event does not exist.
    """
    async with _get_connection() as conn:
        async with conn.transaction():
            row = await (
                await conn.execute("SELECT doc FROM events WHERE id = %s FOR UPDATE", (event_id,))
            ).fetchone()
            if not row:
                return None
            doc = validate_document(mutate(row[0]))
            await conn.execute(
                "UPDATE events SET doc = %s, updated_at = NOW() WHERE id = %s",
                (Json(doc), event_id),
            )
    return to_entity(event_id, doc)


async def events_remove(event_id: str) -> bool:
    async with _get_connection() as conn:
        row = await (
            await conn.execute("DELETE FROM events WHERE id = %s RETURNING id", (event_id,))
        ).fetchone()
        return row is not None

from typing import Any

from event_api.db.core import _get_connection
from event_api.models.events import UserProjection


async def users_fetch_projections(user_ids: list[str]) -> dict[str, dict[str, Any]]:
    """Return ``{id: {_id, name, imageUrl}}`` for the users that exist."""
    if not user_ids:
        return {}
    async with _get_connection() as conn:
        rows = await conn.execute(
            "SELECT id, doc->>'name', doc->>'imageUrl' FROM users WHERE id = ANY(%s)",
            (list(user_ids),),
        )
        return {
            user_id: UserProjection(id=user_id, name=name, imageUrl=image_url).model_dump(by_alias=True)
            async for user_id, name, image_url in rows
        }

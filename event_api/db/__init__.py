from event_api.db.core import close_pool, get_pool, init_pool, ping
from event_api.db.events import (
    events_create,
    events_find,
    events_find_by_id,
    events_find_one_and_update,
    events_modify,
    events_remove,
)
from event_api.db.users import users_fetch_projections

__all__ = [
    "close_pool",
    "events_create",
    "events_find",
    "events_find_by_id",
    "events_find_one_and_update",
    "events_modify",
    "events_remove",
    "get_pool",
    "init_pool",
    "ping",
    "users_fetch_projections",
]

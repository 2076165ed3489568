"""Database schema management module.

Schema changes are applied through the versioned SQL files in
``migrations/``.
"""

import logging

from event_api.db.migrations import get_current_version, run_migrations

logger = logging.getLogger(__name__)


async def ensure_schema() -> None:
    """Bring the schema up to date. Safe to call repeatedly."""
    current_version = await get_current_version()
    logger.info("Current schema version: %d", current_version)

    if await run_migrations():
        logger.info(
            "Schema updated from version %d to %d", current_version, await get_current_version()
        )
    else:
        logger.debug("Schema is up to date at version %d", current_version)


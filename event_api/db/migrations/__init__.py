"""Versioned SQL migrations for the document store.

Migrations are ``NNN_description.sql`` files in this directory, applied in
version order. Applied versions are recorded in ``schema_migrations``.
"""

import logging
from pathlib import Path
from typing import Any

from event_api.db.core import _get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    description TEXT
);
"""


async def get_current_version() -> int:
    """Get the current migration version from the database."""
    async with _get_connection() as conn:
        await conn.execute(_CREATE_TABLE)
        row = await (
            await conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        ).fetchone()
        return int(row[0]) if row else 0


def get_available_migrations() -> list[dict[str, Any]]:
    """List migration files on disk, sorted by version."""
    found = []
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        # "001_initial.sql" -> 1
        try:
            version = int(path.stem.split("_")[0])
        except (ValueError, IndexError):
            continue
        found.append({
            "version": version,
            "filename": path.name,
            "description": "_".join(path.stem.split("_")[1:]),
            "path": path,
        })
    return sorted(found, key=lambda m: m["version"])


async def get_pending_migrations() -> list[dict[str, Any]]:
    current = await get_current_version()
    return [m for m in get_available_migrations() if m["version"] > current]


async def apply_migration(version: int, sql: str, description: str = "") -> None:
    """Apply one migration and record it, atomically."""
    async with _get_connection() as conn:
        async with conn.transaction():
            await conn.execute(sql)
            await conn.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                (version, description),
            )
    logger.info("Applied migration %d: %s", version, description)


async def run_migrations() -> int:
    """Run all pending migrations.

    Returns:
        Number of migrations applied.
    """
    applied = 0
    for migration in await get_pending_migrations():
        await apply_migration(
            migration["version"],
            migration["path"].read_text(),
            migration["description"],
        )
        applied += 1
    if applied:
        logger.info("Applied %d migrations", applied)
    else:
        logger.debug("No pending migrations")
    return applied


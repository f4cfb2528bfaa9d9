"""
SQLite database connection management.

Provides async database initialization and a health probe.
Uses aiosqlite for async SQLite access; repositories open their own
short-lived connections.

Schema is defined in schema.sql (idempotent, no migrations).
"""

from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from src.core.config import settings

log = structlog.get_logger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"


async def init_database(db_path: Optional[Path] = None) -> None:
    """
    Initialize database from schema.sql.

    Creates the database file if missing. Existing databases are left
    intact (CREATE TABLE IF NOT EXISTS throughout).
    """
    db_path = Path(db_path or settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    log.info("initializing_database", path=str(db_path))

    if not SCHEMA_FILE.exists():
        log.error("schema_file_not_found", path=str(SCHEMA_FILE))
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_FILE}")

    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA foreign_keys = ON")
        # WAL lets health probes and reads run alongside a write
        await db.execute("PRAGMA journal_mode = WAL")
        await db.executescript(SCHEMA_FILE.read_text())
        await db.commit()

    log.info("database_initialized", path=str(db_path))


async def check_database_health(db_path: Optional[Path] = None) -> dict:
    """
    Check database health for the readiness endpoint.

    Returns:
        Dict with health status and basic metrics.
    """
    db_path = Path(db_path or settings.database_path)
    try:
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM sessions WHERE status = 'active'"
            )
            row = await cursor.fetchone()
            cursor = await db.execute("PRAGMA integrity_check")
            integrity = await cursor.fetchone()

        return {
            "status": "healthy",
            "active_sessions": row[0] if row else 0,
            "integrity": integrity[0] if integrity else "unknown",
            "path": str(db_path),
        }
    except aiosqlite.Error as e:
        log.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

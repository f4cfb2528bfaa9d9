"""Tests for database initialization and health probe."""

import aiosqlite
import pytest

from src.persistence.database import check_database_health, init_database


@pytest.mark.asyncio
async def test_creates_tables(tmp_path):
    db_path = tmp_path / "nested" / "coach.db"
    await init_database(db_path)

    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}

    assert {"sessions", "utterances", "parent_profiles", "child_profiles"} <= tables


@pytest.mark.asyncio
async def test_init_is_idempotent(session_repo, session_factory, test_db):
    await session_repo.create(session_factory())

    await init_database(test_db)

    assert await session_repo.get("session-1") is not None


@pytest.mark.asyncio
async def test_health_reports_active_sessions(session_repo, session_factory, test_db):
    await session_repo.create(session_factory())

    health = await check_database_health(test_db)

    assert health["status"] == "healthy"
    assert health["active_sessions"] == 1
    assert health["integrity"] == "ok"


@pytest.mark.asyncio
async def test_health_unhealthy_without_schema(tmp_path):
    health = await check_database_health(tmp_path / "empty.db")
    assert health["status"] == "unhealthy"

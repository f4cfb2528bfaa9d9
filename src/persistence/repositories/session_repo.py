"""Session repository for database operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import aiosqlite
import structlog

from src.domain.models.session import (
    CoachingPhase,
    CrisisLevel,
    PhaseState,
    Session,
    SessionMode,
    SessionStatus,
)

log = structlog.get_logger(__name__)

# Columns a caller may change after creation. mode, user_id and
# time_budget_minutes are fixed for the life of a session.
UPDATABLE_COLUMNS = frozenset(
    {
        "status",
        "crisis_level",
        "current_phase",
        "phase_turns",
        "reality_exploration_depth",
        "emotions_reflected",
        "exceptions_explored",
        "ready_for_options",
        "time_elapsed_minutes",
        "time_extension_offered",
        "turn_count",
    }
)


def _to_db(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if hasattr(value, "value"):  # str enums
        return value.value
    return value


class SessionRepository:
    """Repository for session CRUD operations."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(self, session: Session) -> Session:
        """Insert a new session and return it with database timestamps."""
        phase = session.phase
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            await db.execute(
                """INSERT INTO sessions (
                    id, user_id, mode, status, crisis_level,
                    current_phase, phase_turns, reality_exploration_depth,
                    emotions_reflected, exceptions_explored, ready_for_options,
                    time_budget_minutes, time_elapsed_minutes, time_extension_offered,
                    turn_count, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
                          datetime('now'), datetime('now'))""",
                (
                    session.id,
                    session.user_id,
                    session.mode.value,
                    session.status.value,
                    session.crisis_level.value,
                    phase.current_phase.value,
                    phase.phase_turns,
                    phase.reality_exploration_depth,
                    _to_db(phase.emotions_reflected),
                    _to_db(phase.exceptions_explored),
                    _to_db(phase.ready_for_options),
                    phase.time_budget_minutes,
                    phase.time_elapsed_minutes,
                    _to_db(phase.time_extension_offered),
                    session.turn_count,
                ),
            )
            await db.commit()

            cursor = await db.execute(
                "SELECT * FROM sessions WHERE id = ?", (session.id,)
            )
            row = await cursor.fetchone()
            if not row:
                raise ValueError(f"Session {session.id} not found after creation")

        log.info(
            "session_row_created",
            session_id=session.id,
            mode=session.mode.value,
            time_budget_minutes=phase.time_budget_minutes,
        )
        return self._row_to_session(row)

    async def get(self, session_id: str) -> Optional[Session]:
        """Get a session by ID."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_session(row) if row else None

    async def update(self, session_id: str, fields: Dict[str, Any]) -> None:
        """Write a partial set of fields.

        Raises:
            ValueError: A field is not updatable
        """
        if not fields:
            return
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update session fields: {sorted(unknown)}")

        columns = sorted(fields)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        values = [_to_db(fields[column]) for column in columns]

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"UPDATE sessions SET {assignments}, updated_at = datetime('now') "
                "WHERE id = ?",
                (*values, session_id),
            )
            await db.commit()

    async def save_state(self, session: Session) -> None:
        """Write all mutable fields of a session."""
        fields: Dict[str, Any] = {
            "status": session.status,
            "crisis_level": session.crisis_level,
            "turn_count": session.turn_count,
        }
        fields.update(session.phase.model_dump(exclude={"time_budget_minutes"}))
        await self.update(session.id, fields)

    async def get_active_for_user(self, user_id: str) -> Optional[Session]:
        """Most recently updated active session for a user, if any."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """SELECT * FROM sessions
                   WHERE user_id = ? AND status = 'active'
                   ORDER BY updated_at DESC, created_at DESC
                   LIMIT 1""",
                (user_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_session(row) if row else None

    async def list_for_user(
        self, user_id: str, status: Optional[SessionStatus] = None
    ) -> List[Session]:
        query = "SELECT * FROM sessions WHERE user_id = ?"
        params: list = [user_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY created_at DESC"

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def close_active_for_user(self, user_id: str) -> int:
        """Mark every active session of a user complete. Returns rows changed."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "UPDATE sessions SET status = 'complete', updated_at = datetime('now') "
                "WHERE user_id = ? AND status = 'active'",
                (user_id,),
            )
            await db.commit()
            return cursor.rowcount

    def _row_to_session(self, row: aiosqlite.Row) -> Session:
        """Convert a database row to a Session model."""
        return Session(
            id=row["id"],
            user_id=row["user_id"],
            mode=SessionMode(row["mode"]),
            status=SessionStatus(row["status"]),
            crisis_level=CrisisLevel(row["crisis_level"]),
            turn_count=row["turn_count"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            phase=PhaseState(
                current_phase=CoachingPhase(row["current_phase"]),
                phase_turns=row["phase_turns"],
                reality_exploration_depth=row["reality_exploration_depth"],
                emotions_reflected=bool(row["emotions_reflected"]),
                exceptions_explored=bool(row["exceptions_explored"]),
                ready_for_options=bool(row["ready_for_options"]),
                time_budget_minutes=row["time_budget_minutes"],
                time_elapsed_minutes=row["time_elapsed_minutes"],
                time_extension_offered=bool(row["time_extension_offered"]),
            ),
        )

"""Utterance repository for database operations."""

from datetime import datetime
from typing import Dict, List

import aiosqlite

from src.domain.models.utterance import Speaker, Utterance


class UtteranceRepository:
    """Repository for conversation history."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def save_turn(self, *utterances: Utterance) -> None:
        """Save the utterances of one turn in a single transaction.

        Args:
            utterances: Parent message first, then the assistant reply
        """
        async with aiosqlite.connect(self.db_path) as db:
            await db.executemany(
                """INSERT INTO utterances (
                    id, session_id, turn_number, speaker, text,
                    is_crisis, input_tokens, output_tokens, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        u.id,
                        u.session_id,
                        u.turn_number,
                        u.speaker.value,
                        u.text,
                        1 if u.is_crisis else 0,
                        u.input_tokens,
                        u.output_tokens,
                        u.created_at.isoformat(),
                    )
                    for u in utterances
                ],
            )
            await db.commit()

    async def get_recent(self, session_id: str, limit: int = 50) -> List[Utterance]:
        """Get the last ``limit`` utterances, oldest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """SELECT * FROM utterances
                   WHERE session_id = ?
                   ORDER BY rowid DESC
                   LIMIT ?""",
                (session_id, limit),
            )
            rows = await cursor.fetchall()
        return [self._row_to_utterance(row) for row in reversed(rows)]

    async def get_token_totals(self, session_id: str) -> Dict[str, int]:
        """Summed token usage for a session."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """SELECT COALESCE(SUM(input_tokens), 0), COALESCE(SUM(output_tokens), 0)
                   FROM utterances WHERE session_id = ?""",
                (session_id,),
            )
            row = await cursor.fetchone()
        return {"input_tokens": row[0], "output_tokens": row[1]}

    def _row_to_utterance(self, row: aiosqlite.Row) -> Utterance:
        return Utterance(
            id=row["id"],
            session_id=row["session_id"],
            turn_number=row["turn_number"],
            speaker=Speaker(row["speaker"]),
            text=row["text"],
            is_crisis=bool(row["is_crisis"]),
            input_tokens=row["input_tokens"],
            output_tokens=row["output_tokens"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

"""Parent and child profile repository.

Upserts merge: a None (or empty list) in the incoming record never
overwrites a stored value, so profile completeness cannot drop through a
partial update.
"""

import json
from typing import List, Optional

import aiosqlite
import structlog

from src.domain.models.profile import ChildProfile, ParentProfile

log = structlog.get_logger(__name__)

CHILD_LIST_FIELDS = ("main_challenges", "strengths")
CHILD_SCALAR_FIELDS = (
    "child_age",
    "school_type",
    "grade_level",
    "medication_status",
    "therapy_status",
)


class ProfileRepository:
    def __init__(self, db_path: str):
        self.db_path = db_path

    async def get_parent(self, user_id: str) -> Optional[ParentProfile]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM parent_profiles WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        if not row:
            return None
        return ParentProfile(
            user_id=row["user_id"],
            parent_name=row["parent_name"],
            family_context=row["family_context"],
            support_network=json.loads(row["support_network"] or "[]"),
        )

    async def get_children(self, user_id: str) -> List[ChildProfile]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM child_profiles WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_child(row) for row in rows]

    async def upsert_parent(self, profile: ParentProfile) -> ParentProfile:
        existing = await self.get_parent(profile.user_id)
        merged = profile
        if existing is not None:
            merged = ParentProfile(
                user_id=profile.user_id,
                parent_name=profile.parent_name or existing.parent_name,
                family_context=profile.family_context or existing.family_context,
                support_network=profile.support_network or existing.support_network,
            )

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO parent_profiles (
                    user_id, parent_name, family_context, support_network, updated_at
                ) VALUES (?, ?, ?, ?, datetime('now'))
                ON CONFLICT (user_id) DO UPDATE SET
                    parent_name = excluded.parent_name,
                    family_context = excluded.family_context,
                    support_network = excluded.support_network,
                    updated_at = excluded.updated_at""",
                (
                    merged.user_id,
                    merged.parent_name,
                    merged.family_context,
                    json.dumps(merged.support_network),
                ),
            )
            await db.commit()

        log.info("parent_profile_saved", user_id=profile.user_id)
        return merged

    async def upsert_child(self, child: ChildProfile) -> ChildProfile:
        """Insert a child, or merge into the existing record with the same name."""
        existing = next(
            (
                c
                for c in await self.get_children(child.user_id)
                if c.child_name and c.child_name == child.child_name
            ),
            None,
        )

        async with aiosqlite.connect(self.db_path) as db:
            if child.is_primary:
                await db.execute(
                    "UPDATE child_profiles SET is_primary = 0 WHERE user_id = ?",
                    (child.user_id,),
                )

            if existing is None:
                cursor = await db.execute(
                    """INSERT INTO child_profiles (
                        user_id, child_name, child_age, main_challenges, strengths,
                        school_type, grade_level, medication_status, therapy_status,
                        is_primary
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        child.user_id,
                        child.child_name,
                        child.child_age,
                        json.dumps(child.main_challenges),
                        json.dumps(child.strengths),
                        child.school_type,
                        child.grade_level,
                        child.medication_status,
                        child.therapy_status,
                        1 if child.is_primary else 0,
                    ),
                )
                saved = child.model_copy(update={"id": cursor.lastrowid})
            else:
                update = {
                    field: getattr(child, field)
                    for field in CHILD_SCALAR_FIELDS + CHILD_LIST_FIELDS
                    if getattr(child, field) not in (None, [])
                }
                update["is_primary"] = child.is_primary or existing.is_primary
                saved = existing.model_copy(update=update)
                await db.execute(
                    """UPDATE child_profiles SET
                        child_age = ?, main_challenges = ?, strengths = ?,
                        school_type = ?, grade_level = ?, medication_status = ?,
                        therapy_status = ?, is_primary = ?, updated_at = datetime('now')
                       WHERE id = ?""",
                    (
                        saved.child_age,
                        json.dumps(saved.main_challenges),
                        json.dumps(saved.strengths),
                        saved.school_type,
                        saved.grade_level,
                        saved.medication_status,
                        saved.therapy_status,
                        1 if saved.is_primary else 0,
                        existing.id,
                    ),
                )
            await db.commit()

        log.info("child_profile_saved", user_id=child.user_id, child_id=saved.id)
        return saved

    def _row_to_child(self, row: aiosqlite.Row) -> ChildProfile:
        return ChildProfile(
            id=row["id"],
            user_id=row["user_id"],
            child_name=row["child_name"],
            child_age=row["child_age"],
            main_challenges=json.loads(row["main_challenges"] or "[]"),
            strengths=json.loads(row["strengths"] or "[]"),
            school_type=row["school_type"],
            grade_level=row["grade_level"],
            medication_status=row["medication_status"],
            therapy_status=row["therapy_status"],
            is_primary=bool(row["is_primary"]),
        )

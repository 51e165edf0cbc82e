"""
Bonus round: judges hand out up to ten extra points across the chilis.
"""

import logging
from typing import Any, Dict, List

from .competition import read_competition
from .errors import ValidationError
from .registry import is_missing, parse_chili_number

logger = logging.getLogger(__name__)

MAX_BONUS_POINTS = 10

START_SQL = """
    INSERT INTO competition (id, status, bonus_round_active, created_at, updated_at)
    VALUES (1, 'voting', 1, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ON CONFLICT(id) DO UPDATE SET
        bonus_round_active = 1,
        updated_at = CURRENT_TIMESTAMP
"""

END_SQL = """
    UPDATE competition
    SET bonus_round_active = 0, updated_at = CURRENT_TIMESTAMP
    WHERE id = 1
"""


def parse_bonus_points(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            "bonus_points must be a non-negative integer", details=repr(value)
        )
    return value


class BonusRound:
    """Bonus round flag and per-judge bonus point allocations."""

    def __init__(
        self,
        db_manager: Any,
        config: Any,
    ) -> None:
        self.db = db_manager
        self.config = config

    async def is_active(self) -> bool:
        async with self.db.connect() as db:
            competition = await read_competition(db)
        return competition["bonus_round_active"]

    async def start(self) -> None:
        """Turn the bonus round on, creating the competition row if needed."""
        async with self.db.connect() as db:
            await db.execute(START_SQL)
        logger.info("Bonus round started")

    async def end(self) -> None:
        async with self.db.connect() as db:
            await db.execute(END_SQL)
        logger.info("Bonus round ended")

    async def submit_bonus_scores(
        self,
        entries: Any,
        judge_id: Any,
    ) -> Dict[str, Any]:
        """
        Save one judge's bonus point allocation.

        Each judge submits once and may hand out at most MAX_BONUS_POINTS in
        total. Entries with zero points are ignored, entries naming an
        unknown chili are skipped with a warning. The duplicate check and
        all inserts share one write-locked transaction.

        @param entries: List of {"chili_id": number, "bonus_points": int}
        @param judge_id: Identifier of the submitting judge
        @return: Dictionary with the judge, point total and inserted rows
        """
        if not isinstance(entries, list) or is_missing(judge_id):
            raise ValidationError("bonus_scores array and judge_id are required")
        if not all(isinstance(entry, dict) for entry in entries):
            raise ValidationError("Each bonus score must be an object")

        allocations = [
            (entry.get("chili_id"), parse_bonus_points(entry.get("bonus_points")))
            for entry in entries
        ]
        total_points = sum(points for _, points in allocations)
        if total_points > MAX_BONUS_POINTS:
            raise ValidationError(
                f"Total bonus points cannot exceed {MAX_BONUS_POINTS}",
                totalPoints=total_points,
                maxPoints=MAX_BONUS_POINTS,
            )

        inserted: List[Dict[str, Any]] = []
        async with self.db.transaction() as db:
            if self.config.is_feature_enabled("require_active_bonus_round"):
                competition = await read_competition(db)
                if not competition["bonus_round_active"]:
                    raise ValidationError("Bonus round is not active")

            cursor = await db.execute(
                "SELECT COUNT(*) AS count FROM bonus_scores WHERE judge_id = ?",
                (judge_id,),
            )
            existing = await cursor.fetchone()
            if existing["count"] > 0:
                raise ValidationError("Judge has already submitted bonus scores")

            for chili_number, points in allocations:
                if points <= 0:
                    continue

                chili_number = parse_chili_number(chili_number, "chili_id")
                chili_id = await self.db.get_chili_id(db, chili_number)
                if chili_id is None:
                    logger.warning(
                        "Chili #%s not found in database - skipping bonus from judge %s",
                        chili_number,
                        judge_id,
                    )
                    continue

                await db.execute(
                    "INSERT INTO bonus_scores (chili_id, bonus_points, judge_id) VALUES (?, ?, ?)",
                    (chili_id, points, judge_id),
                )
                inserted.append(
                    {"chili_number": chili_number, "db_id": chili_id, "points": points}
                )

        logger.info(
            "Bonus scores saved for judge %s - Total: %s, Inserted: %s",
            judge_id,
            total_points,
            len(inserted),
        )
        return {
            "judge_id": judge_id,
            "total_points": total_points,
            "inserted_count": len(inserted),
            "details": inserted,
        }

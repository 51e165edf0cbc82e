"""
Judging: per-judge category scores and their per-chili aggregates.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, ValidationError
from .registry import is_missing, parse_chili_number, parse_path_number

logger = logging.getLogger(__name__)

CATEGORIES = ("aroma", "appearance", "taste", "heat_level", "creativity")
MAX_CATEGORY_POINTS = 10

# Scores and bonus points are aggregated in separate subqueries; joining both
# tables onto chilis at once would repeat each bonus row once per score.
SCORE_AGGREGATES_CTE = """
    score_stats AS (
        SELECT
            chili_id,
            COUNT(DISTINCT id) AS score_count,
            AVG(aroma) AS avg_aroma,
            AVG(appearance) AS avg_appearance,
            AVG(taste) AS avg_taste,
            AVG(heat_level) AS avg_heat_level,
            AVG(creativity) AS avg_creativity,
            AVG(total_score) AS avg_total_score,
            MAX(total_score) AS max_total_score,
            MIN(total_score) AS min_total_score
        FROM scores
        GROUP BY chili_id
    )
"""

SCORE_COLUMNS = """
    c.number,
    c.name,
    c.cook,
    COALESCE(s.score_count, 0) AS score_count,
    ROUND(COALESCE(s.avg_aroma, 0), 2) AS avg_aroma,
    ROUND(COALESCE(s.avg_appearance, 0), 2) AS avg_appearance,
    ROUND(COALESCE(s.avg_taste, 0), 2) AS avg_taste,
    ROUND(COALESCE(s.avg_heat_level, 0), 2) AS avg_heat_level,
    ROUND(COALESCE(s.avg_creativity, 0), 2) AS avg_creativity,
    ROUND(COALESCE(s.avg_total_score, 0), 2) AS avg_total_score,
    COALESCE(s.max_total_score, 0) AS max_total_score,
    COALESCE(s.min_total_score, 0) AS min_total_score
"""

SUMMARY_SQL = f"""
    WITH {SCORE_AGGREGATES_CTE}
    SELECT {SCORE_COLUMNS}
    FROM chilis c
    LEFT JOIN score_stats s ON s.chili_id = c.id
    ORDER BY avg_total_score DESC, c.number ASC
"""

FINAL_SQL = f"""
    WITH {SCORE_AGGREGATES_CTE},
    bonus_stats AS (
        SELECT
            chili_id,
            SUM(bonus_points) AS total_bonus_points,
            COUNT(DISTINCT judge_id) AS bonus_voters
        FROM bonus_scores
        GROUP BY chili_id
    )
    SELECT
        {SCORE_COLUMNS},
        COALESCE(b.total_bonus_points, 0) AS total_bonus_points,
        COALESCE(b.bonus_voters, 0) AS bonus_voters,
        ROUND(
            ROUND(COALESCE(s.avg_total_score, 0), 2) + COALESCE(b.total_bonus_points, 0),
            2
        ) AS final_score
    FROM chilis c
    LEFT JOIN score_stats s ON s.chili_id = c.id
    LEFT JOIN bonus_stats b ON b.chili_id = c.id
    ORDER BY final_score DESC, avg_total_score DESC, c.number ASC
"""


def parse_category(
    name: str,
    value: Any,
) -> float:
    """
    Validate one category value; a missing category counts as zero.

    @param name: Category name used in the error message
    @param value: Raw value from the request body
    @return: The category points
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", details=repr(value))
    if value < 0 or value > MAX_CATEGORY_POINTS:
        raise ValidationError(
            f"{name} must be between 0 and {MAX_CATEGORY_POINTS}", details=repr(value)
        )
    return value


class JudgingService:
    """Records judge scores and reports per-chili results."""

    def __init__(
        self,
        db_manager: Any,
    ) -> None:
        self.db = db_manager

    async def submit_score(
        self,
        chili_number: Any,
        categories: Dict[str, Any],
        judge_id: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Save one judge's score for a chili.

        A judge may score the same chili more than once; every submission
        is stored and counted.

        @param chili_number: Number of the chili being scored
        @param categories: Mapping of category name to points (0-10)
        @param judge_id: Identifier of the judge, optional
        @return: Dictionary with the score id, chili number and id, and total
        """
        if is_missing(chili_number):
            raise ValidationError("chili_id is required")
        chili_number = parse_chili_number(chili_number, "chili_id")

        points = {name: parse_category(name, categories.get(name)) for name in CATEGORIES}
        total = sum(points.values())

        async with self.db.connect() as db:
            chili_id = await self.db.get_chili_id(db, chili_number)
            if chili_id is None:
                raise NotFoundError(f"Chili #{chili_number} not found")

            cursor = await db.execute(
                """
                INSERT INTO scores
                    (chili_id, aroma, appearance, taste, heat_level, creativity,
                     total_score, judge_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    chili_id,
                    points["aroma"],
                    points["appearance"],
                    points["taste"],
                    points["heat_level"],
                    points["creativity"],
                    total,
                    judge_id if not is_missing(judge_id) else None,
                ),
            )
            score_id = cursor.lastrowid

        logger.info(
            "Score saved for Chili #%s (DB ID: %s) - Total: %s", chili_number, chili_id, total
        )
        return {
            "id": score_id,
            "chili_number": chili_number,
            "chili_db_id": chili_id,
            "total_score": total,
        }

    async def get_scores(
        self,
        chili_number: Any,
    ) -> List[Dict[str, Any]]:
        """
        Raw score rows for one chili, newest first.

        @param chili_number: Number of the chili
        @return: List of score row dictionaries
        """
        chili_number = parse_path_number(chili_number, f"Chili #{chili_number} not found")

        async with self.db.connect() as db:
            chili_id = await self.db.get_chili_id(db, chili_number)
            if chili_id is None:
                raise NotFoundError(f"Chili #{chili_number} not found")

            cursor = await db.execute(
                "SELECT * FROM scores WHERE chili_id = ? ORDER BY created_at DESC, id DESC",
                (chili_id,),
            )
            return [dict(row) for row in await cursor.fetchall()]

    async def get_scores_summary(self) -> List[Dict[str, Any]]:
        return await self.db.fetch_all(SUMMARY_SQL)

    async def get_final_scores(self) -> List[Dict[str, Any]]:
        """
        Per-chili aggregates with bonus points folded in.

        final_score is the rounded average judged total plus the sum of all
        bonus points the chili received.

        @return: List of result dictionaries, best final score first
        """
        results = await self.db.fetch_all(FINAL_SQL)
        logger.debug("Final scores calculated for %d chilis", len(results))
        return results

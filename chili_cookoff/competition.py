"""
Competition state: the single-row status machine and the bonus round flag.
"""

import logging
from typing import Any, Dict

import aiosqlite

from .errors import ValidationError

logger = logging.getLogger(__name__)

STATUSES = ("setup", "voting", "closed")

# Every write to the singleton is one upsert so that lazy creation never races.
ENSURE_ROW_SQL = """
    INSERT INTO competition (id, status, bonus_round_active, created_at, updated_at)
    VALUES (1, 'setup', 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ON CONFLICT(id) DO NOTHING
"""

SET_STATUS_SQL = """
    INSERT INTO competition (id, status, bonus_round_active, created_at, updated_at)
    VALUES (1, :status, 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ON CONFLICT(id) DO UPDATE SET
        status = excluded.status,
        updated_at = CURRENT_TIMESTAMP
"""

RESET_SQL = """
    INSERT INTO competition (id, status, bonus_round_active, created_at, updated_at)
    VALUES (1, 'setup', 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ON CONFLICT(id) DO UPDATE SET
        status = 'setup',
        bonus_round_active = 0,
        updated_at = CURRENT_TIMESTAMP
"""


async def read_competition(db: aiosqlite.Connection) -> Dict[str, Any]:
    """
    Return the competition row, creating it with defaults on first access.

    @param db: Active database connection
    @return: Dictionary with status and bonus_round_active (as bool)
    """
    await db.execute(ENSURE_ROW_SQL)
    cursor = await db.execute(
        "SELECT status, bonus_round_active FROM competition WHERE id = 1"
    )
    row = await cursor.fetchone()
    return {
        "status": row["status"],
        "bonus_round_active": bool(row["bonus_round_active"]),
    }


async def reset_competition(db: aiosqlite.Connection) -> None:
    """Put the competition back to setup with the bonus round off."""
    await db.execute(RESET_SQL)


class CompetitionState:
    """Reads and transitions the competition status."""

    def __init__(
        self,
        db_manager: Any,
    ) -> None:
        self.db = db_manager

    async def get_status(self) -> str:
        async with self.db.connect() as db:
            competition = await read_competition(db)
        return competition["status"]

    async def set_status(
        self,
        status: Any,
    ) -> str:
        """
        Move the competition to another status.

        Transitions are admin-issued only; any of the three statuses may
        follow any other.

        @param status: Requested status, one of setup, voting or closed
        @return: The new status
        """
        if status not in STATUSES:
            raise ValidationError("Invalid status. Must be: setup, voting, or closed")

        async with self.db.connect() as db:
            await db.execute(SET_STATUS_SQL, {"status": status})

        logger.info("Competition status updated to: %s", status)
        return status

    async def get_stats(self) -> Dict[str, Any]:
        """
        Overview of stored data for the admin dashboard.

        @return: Dictionary with table counts, status and bonus round flag
        """
        counts = await self.db.count_rows("chilis", "votes", "scores", "bonus_scores")

        async with self.db.connect() as db:
            competition = await read_competition(db)

        return {
            "totalChilis": counts["chilis"],
            "totalVotes": counts["votes"],
            "totalScores": counts["scores"],
            "totalBonusScores": counts["bonus_scores"],
            "competitionStatus": competition["status"],
            "bonusRoundActive": competition["bonus_round_active"],
        }

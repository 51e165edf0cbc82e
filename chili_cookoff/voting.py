"""
Attendee voting: ranked top-three picks and point-weighted results.
"""

import logging
from typing import Any, Dict, Optional

from .errors import ValidationError
from .registry import is_missing, parse_chili_number

logger = logging.getLogger(__name__)

FIRST_PLACE_POINTS = 5
SECOND_PLACE_POINTS = 3
THIRD_PLACE_POINTS = 1

RESULTS_SQL = """
    SELECT
        c.number,
        c.name,
        c.cook,
        SUM(CASE
            WHEN v.first_place = c.number THEN :first
            WHEN v.second_place = c.number THEN :second
            WHEN v.third_place = c.number THEN :third
            ELSE 0
        END) AS total_points,
        SUM(CASE WHEN v.first_place = c.number THEN 1 ELSE 0 END) AS first_place_votes,
        SUM(CASE WHEN v.second_place = c.number THEN 1 ELSE 0 END) AS second_place_votes,
        SUM(CASE WHEN v.third_place = c.number THEN 1 ELSE 0 END) AS third_place_votes,
        COUNT(DISTINCT v.id) AS total_votes_received
    FROM chilis c
    LEFT JOIN votes v ON c.number IN (v.first_place, v.second_place, v.third_place)
    GROUP BY c.id, c.number, c.name, c.cook
    ORDER BY
        total_points DESC,
        first_place_votes DESC,
        second_place_votes DESC,
        c.number ASC
"""


class VotingService:
    """Records attendee votes and tallies the results."""

    def __init__(
        self,
        db_manager: Any,
    ) -> None:
        self.db = db_manager

    async def submit_vote(
        self,
        first_place: Any,
        second_place: Any,
        third_place: Any,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        """
        Save an attendee's top three picks.

        Numbers are not checked against the registry; a vote for an unknown
        chili is stored and simply never shows up in the results.

        @param first_place: Chili number picked first (5 points)
        @param second_place: Chili number picked second (3 points)
        @param third_place: Chili number picked third (1 point)
        @param ip_address: Voter's address, optional
        @param user_agent: Voter's browser user agent, optional
        @return: The new vote id
        """
        placements = (first_place, second_place, third_place)
        if any(is_missing(value) for value in placements):
            raise ValidationError("Must select first, second, and third place")

        first, second, third = (
            parse_chili_number(value, field)
            for value, field in zip(placements, ("first_place", "second_place", "third_place"))
        )
        if len({first, second, third}) != 3:
            raise ValidationError("Must select three different chilis")

        async with self.db.connect() as db:
            cursor = await db.execute(
                """
                INSERT INTO votes (first_place, second_place, third_place, ip_address, user_agent)
                VALUES (?, ?, ?, ?, ?)
                """,
                (first, second, third, ip_address or None, user_agent or None),
            )
            vote_id = cursor.lastrowid

        logger.info("Vote saved - 1st: %s 2nd: %s 3rd: %s", first, second, third)
        return vote_id

    async def get_results(self) -> Dict[str, Any]:
        """
        Tally points per chili.

        Ties on points go to more first-place votes, then more second-place
        votes, then the lower chili number.

        @return: Dictionary with ordered results, total vote count and the point schedule
        """
        results = await self.db.fetch_all(
            RESULTS_SQL,
            {
                "first": FIRST_PLACE_POINTS,
                "second": SECOND_PLACE_POINTS,
                "third": THIRD_PLACE_POINTS,
            },
        )
        counts = await self.db.count_rows("votes")

        logger.info(
            "Vote results calculated for %d chilis, %d votes cast",
            len(results),
            counts["votes"],
        )
        return {
            "results": results,
            "totalVotes": counts["votes"],
            "votingSystem": {
                "firstPlace": FIRST_PLACE_POINTS,
                "secondPlace": SECOND_PLACE_POINTS,
                "thirdPlace": THIRD_PLACE_POINTS,
            },
        }

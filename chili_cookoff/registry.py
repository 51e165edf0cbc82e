"""
Chili registry: competition entries keyed by their number.
"""

import logging
from typing import Any, Dict, List

from .competition import reset_competition
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# SQLite stores integers as signed 64-bit values.
MIN_CHILI_NUMBER = -(2**63)
MAX_CHILI_NUMBER = 2**63 - 1

# Cleanup statements in dependency order: dependents first, chilis last.
RESET_STEPS = (
    ("bonus_scores", "DELETE FROM bonus_scores"),
    ("scores", "DELETE FROM scores"),
    ("votes", "DELETE FROM votes"),
    ("chilis", "DELETE FROM chilis"),
)

DELETE_CHILI_STEPS = (
    ("bonus_scores", "DELETE FROM bonus_scores WHERE chili_id = :chili_id"),
    ("scores", "DELETE FROM scores WHERE chili_id = :chili_id"),
    (
        "votes",
        "DELETE FROM votes WHERE :number IN (first_place, second_place, third_place)",
    ),
    ("chilis", "DELETE FROM chilis WHERE id = :chili_id"),
)


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_chili_number(
    value: Any,
    field: str = "number",
) -> int:
    """
    Convert a client-supplied chili number to an int.

    Accepts ints and integral strings ("7"); rejects booleans, fractions,
    values SQLite cannot store and anything else with a ValidationError
    naming the field.

    @param value: Raw value from a request body or URL
    @param field: Field name used in the error message
    @return: The chili number
    """
    number = None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            pass
    if number is None:
        raise ValidationError(f"{field} must be an integer", details=repr(value))
    if not MIN_CHILI_NUMBER <= number <= MAX_CHILI_NUMBER:
        raise ValidationError(f"{field} is out of range", details=repr(value))
    return number


def parse_path_number(
    value: Any,
    not_found: str,
) -> int:
    """
    Convert a chili number taken from a URL path.

    A segment that is not a storable integer can never name a chili, so it
    is reported as not found rather than as bad input.

    @param value: Raw path segment
    @param not_found: Error message for the NotFoundError
    @return: The chili number
    """
    try:
        return parse_chili_number(value)
    except ValidationError:
        raise NotFoundError(not_found) from None


class ChiliRegistry:
    """Creates, lists and deletes chili entries."""

    def __init__(
        self,
        db_manager: Any,
    ) -> None:
        self.db = db_manager

    async def list_chilis(self) -> List[Dict[str, Any]]:
        return await self.db.fetch_all(
            "SELECT number, name, cook FROM chilis ORDER BY number ASC"
        )

    async def upsert_chili(
        self,
        number: Any,
        name: Any = None,
        cook: Any = None,
    ) -> Dict[str, Any]:
        """
        Insert a chili or overwrite the name and cook of an existing number.

        @param number: Chili number (required)
        @param name: Chili name, stored as "" when omitted
        @param cook: Cook name, stored as "" when omitted
        @return: Dictionary with the saved data and the affected row count
        """
        if is_missing(number):
            raise ValidationError("number is required")
        number = parse_chili_number(number)
        name = name or ""
        cook = cook or ""

        async with self.db.connect() as db:
            cursor = await db.execute(
                """
                INSERT INTO chilis (number, name, cook)
                VALUES (?, ?, ?)
                ON CONFLICT(number) DO UPDATE SET
                    name = excluded.name,
                    cook = excluded.cook
                """,
                (number, name, cook),
            )
            changes = cursor.rowcount

        logger.info("Saved chili #%s - changes: %s", number, changes)
        return {
            "data": {"number": number, "name": name, "cook": cook},
            "changes": changes,
        }

    async def delete_all(self) -> Dict[str, int]:
        """
        Reset the entire competition.

        Deletes every bonus score, score, vote and chili, then puts the
        competition back to setup with the bonus round off, all in one
        transaction.

        @return: Deleted row counts keyed by table name
        """
        deleted = {}
        async with self.db.transaction() as db:
            for table, statement in RESET_STEPS:
                cursor = await db.execute(statement)
                deleted[table] = cursor.rowcount
            await reset_competition(db)

        logger.info("Competition reset: %s", deleted)
        return deleted

    async def delete_chili(
        self,
        number: Any,
    ) -> Dict[str, int]:
        """
        Delete one chili together with everything that references it.

        Votes naming the chili in any of the three placement slots are
        removed as a whole.

        @param number: Chili number to delete
        @return: Deleted row counts keyed by table name
        """
        number = parse_chili_number(number)

        deleted = {}
        async with self.db.transaction() as db:
            chili_id = await self.db.get_chili_id(db, number)
            if chili_id is None:
                raise NotFoundError("Chili not found")

            params = {"chili_id": chili_id, "number": number}
            for table, statement in DELETE_CHILI_STEPS:
                cursor = await db.execute(statement, params)
                deleted[table] = cursor.rowcount

        logger.info("Deleted chili #%s and related data: %s", number, deleted)
        return deleted

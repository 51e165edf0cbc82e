"""
Database operations for the chili cook-off service.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS chilis (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    number INTEGER NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    cook TEXT NOT NULL DEFAULT '',
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chili_id INTEGER NOT NULL REFERENCES chilis(id),
    aroma INTEGER NOT NULL DEFAULT 0,
    appearance INTEGER NOT NULL DEFAULT 0,
    taste INTEGER NOT NULL DEFAULT 0,
    heat_level INTEGER NOT NULL DEFAULT 0,
    creativity INTEGER NOT NULL DEFAULT 0,
    total_score INTEGER NOT NULL DEFAULT 0,
    judge_id TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS votes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_place INTEGER NOT NULL,
    second_place INTEGER NOT NULL,
    third_place INTEGER NOT NULL,
    ip_address TEXT,
    user_agent TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    CHECK (first_place <> second_place
           AND first_place <> third_place
           AND second_place <> third_place)
);

CREATE TABLE IF NOT EXISTS bonus_scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chili_id INTEGER NOT NULL REFERENCES chilis(id),
    bonus_points INTEGER NOT NULL CHECK (bonus_points > 0),
    judge_id TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS competition (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    status TEXT NOT NULL DEFAULT 'setup'
        CHECK (status IN ('setup', 'voting', 'closed')),
    bonus_round_active INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_scores_chili ON scores(chili_id);
CREATE INDEX IF NOT EXISTS idx_bonus_scores_chili ON bonus_scores(chili_id);
CREATE INDEX IF NOT EXISTS idx_bonus_scores_judge ON bonus_scores(judge_id);
CREATE INDEX IF NOT EXISTS idx_votes_first ON votes(first_place);
CREATE INDEX IF NOT EXISTS idx_votes_second ON votes(second_place);
CREATE INDEX IF NOT EXISTS idx_votes_third ON votes(third_place);
"""

# Columns added after the first release: (table, column, definition)
MIGRATIONS = (
    ("scores", "judge_id", "TEXT"),
    ("competition", "bonus_round_active", "INTEGER NOT NULL DEFAULT 0"),
)

TABLES = ("chilis", "scores", "votes", "bonus_scores", "competition")


class DatabaseManager:
    """Manages SQLite connections, transactions and schema setup."""

    def __init__(
        self,
        db_path: str,
        config: Any,
    ) -> None:
        self.db_path = db_path
        self.config = config
        self.busy_timeout_ms = int(config.get("database", "busy_timeout_ms") or 5000)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Open a connection in autocommit mode with per-connection pragmas applied.

        @return: Async context yielding an open connection with dict-like rows
        """
        async with aiosqlite.connect(self.db_path, isolation_level=None) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON")
            await db.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            yield db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run the enclosed statements as one write-locked transaction.

        BEGIN IMMEDIATE takes the write lock up front, so checks made inside
        the block cannot be invalidated by another writer before commit.
        Any exception rolls the whole block back and is re-raised.

        @return: Async context yielding the connection holding the transaction
        """
        async with self.connect() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
            except BaseException:
                await db.execute("ROLLBACK")
                raise
            else:
                await db.execute("COMMIT")

    async def init_db(self) -> None:
        """
        Initialize the SQLite database schema and indexes.

        Enables WAL journaling, creates tables and performs schema migrations
        for databases created by older releases.
        """
        async with self.connect() as db:
            await db.execute("PRAGMA journal_mode = WAL")
            await db.executescript(SCHEMA)
            await self._migrate_schema(db)

        logger.info("Database schema initialized at %s", self.db_path)

    async def _migrate_schema(
        self,
        db: aiosqlite.Connection,
    ) -> None:
        """
        Add columns missing from older databases.

        @param db: Active database connection
        """
        for table, column, definition in MIGRATIONS:
            cursor = await db.execute(f"PRAGMA table_info({table})")
            column_names = [row["name"] for row in await cursor.fetchall()]

            if column not in column_names:
                logger.info("Migrating database schema: adding %s.%s", table, column)
                await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    async def ping(self) -> None:
        """Run a trivial query; raises the driver error if the database is unusable."""
        async with self.connect() as db:
            cursor = await db.execute("SELECT 1")
            await cursor.fetchone()

    async def get_chili_id(
        self,
        db: aiosqlite.Connection,
        number: int,
    ) -> Optional[int]:
        """
        Resolve a chili number to its internal id.

        @param db: Active database connection
        @param number: Chili number (business key)
        @return: The chili's surrogate id, or None if no chili has that number
        """
        cursor = await db.execute("SELECT id FROM chilis WHERE number = ?", (number,))
        row = await cursor.fetchone()
        return row["id"] if row else None

    async def count_rows(self, *tables: str) -> Dict[str, int]:
        """
        Count rows in the given tables.

        @param tables: Table names; must be members of TABLES
        @return: Mapping of table name to row count
        """
        counts = {}
        async with self.connect() as db:
            for table in tables:
                if table not in TABLES:
                    raise ValueError(f"Unknown table: {table}")
                cursor = await db.execute(f"SELECT COUNT(*) AS count FROM {table}")
                row = await cursor.fetchone()
                counts[table] = row["count"]
        return counts

    async def fetch_all(
        self,
        query: str,
        params: Any = (),
    ) -> List[Dict[str, Any]]:
        """
        Run a read query and return its rows as plain dictionaries.

        @param query: SQL text
        @param params: Positional or named parameters for the query
        @return: List of row dictionaries
        """
        async with self.connect() as db:
            cursor = await db.execute(query, params)
            return [dict(row) for row in await cursor.fetchall()]

    async def log_summary(self) -> None:
        """Log how many chilis, scores, votes and bonus scores are stored."""
        counts = await self.count_rows("chilis", "scores", "votes", "bonus_scores")
        logger.info(
            "Database contains %d chilis, %d scores, %d votes, %d bonus scores",
            counts["chilis"],
            counts["scores"],
            counts["votes"],
            counts["bonus_scores"],
        )

#!/usr/bin/env python3
"""
Chili cook-off scoring server.
Serves the JSON API for chili registration, judge scores, attendee votes,
the bonus round and competition state.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import aiosqlite

from chili_cookoff.cookoff import CookoffSystem

logger = logging.getLogger("chili_cookoff")


def default_db_path() -> str:
    if os.getenv("DOCKER", "").lower() == "true" or os.getenv("NODE_ENV") == "production":
        return os.path.join("/app/data", "chili-cookoff.db")
    return "chili-cookoff.db"


async def main():
    """Main function with command line interface."""

    parser = argparse.ArgumentParser(
        description="Chili cook-off scoring server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3005")),
        help="HTTP port (env: PORT)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (env: HOST)",
    )
    parser.add_argument(
        "--db",
        default=os.getenv("DB_PATH", default_db_path()),
        help="SQLite database file path (env: DB_PATH)",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "cookoff_config.json"),
        help="Configuration file path (env: CONFIG_PATH)",
    )

    args = parser.parse_args()

    config_path = Path(args.config)

    if config_path.exists() and not config_path.is_file():
        logger.error("%s exists but is not a file", args.config)
        sys.exit(1)

    system = CookoffSystem(
        host=args.host,
        port=args.port,
        db_path=args.db,
        config_path=args.config,
    )
    logging.getLogger().setLevel(system.config.get("logging", "level"))

    logger.info("Connecting to database at: %s", args.db)
    try:
        await system.init_db()
    except aiosqlite.Error as e:
        logger.error("Schema initialization failed: %s", e)
        sys.exit(1)

    await system.log_summary()

    runner = await system.start_web_server()
    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down gracefully...")
        await runner.cleanup()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nServer interrupted")

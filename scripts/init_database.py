#!/usr/bin/env python3
"""
Initialize the School Library database.

This script:
1. Creates all database tables
2. Optionally loads generated sample data
3. Verifies the database is ready for MCP server use

Usage:
    python scripts/init_database.py [--drop-existing] [--sample-data] [--database-url URL]
"""

import argparse
import logging
import sys

from sqlalchemy import text

from school_library.config import get_config
from school_library.database import DatabaseManager
from school_library.database.seed import seed_database

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"books", "students", "borrow_records"}


def main():
    """Main entry point for database initialization."""
    parser = argparse.ArgumentParser(description="Initialize the School Library database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load generated sample data after creating tables",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for sample data (default: 42)",
    )
    parser.add_argument(
        "--database-url",
        help="Override default database URL",
    )

    args = parser.parse_args()

    logger.info("Initializing database manager...")
    if args.database_url:
        db_manager = DatabaseManager(args.database_url)
    else:
        config = get_config()
        config.database_path.parent.mkdir(parents=True, exist_ok=True)
        db_manager = DatabaseManager(config.get_database_url())

    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        sys.exit(1)

    try:
        logger.info("Creating database schema...")
        db_manager.init_database(drop_existing=args.drop_existing)
        logger.info("Database schema created")

        if args.sample_data:
            logger.info("Loading sample data...")
            summary = seed_database(db_manager, seed=args.seed)
            logger.info(
                "Loaded %d books, %d students and %d borrows",
                summary["books"],
                summary["students"],
                summary["borrows"],
            )

        with db_manager.session_scope() as session:
            result = session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
            )
            tables = [row[0] for row in result]

        logger.info("Tables: %s", ", ".join(tables))
        missing_tables = EXPECTED_TABLES - set(tables)
        if missing_tables:
            logger.error("Missing expected tables: %s", sorted(missing_tables))
            sys.exit(1)

        logger.info("Database initialization complete")

    except Exception:
        logger.exception("Database initialization failed")
        sys.exit(1)
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()

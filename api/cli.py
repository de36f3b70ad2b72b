#!/usr/bin/env python3
"""CLI for Focus Streaks API management tasks.

Usage:
    python -m cli <command>

Commands:
    create-tables      Create missing database tables
    seed-achievements  Insert any missing default achievement definitions
"""

import argparse
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _create_tables() -> None:
    from core.database import create_engine, create_tables, dispose_engine

    engine = create_engine()
    try:
        await create_tables(engine)
    finally:
        await dispose_engine(engine)


async def _seed_achievements() -> list[str]:
    from core.database import create_engine, create_session_maker, dispose_engine
    from services.achievement_catalog import seed_achievements

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            inserted = await seed_achievements(db)
            await db.commit()
    finally:
        await dispose_engine(engine)
    return inserted


def cmd_create_tables() -> int:
    """Create missing database tables."""
    logger.info("Creating tables...")
    asyncio.run(_create_tables())
    logger.info("Tables ready")
    return 0


def cmd_seed_achievements() -> int:
    """Insert any missing default achievement definitions."""
    logger.info("Seeding achievements...")
    inserted = asyncio.run(_seed_achievements())
    if inserted:
        logger.info(f"Inserted {len(inserted)} achievements: {', '.join(inserted)}")
    else:
        logger.info("All achievements already present")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Focus Streaks API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "create-tables",
        help="Create missing database tables",
    )
    subparsers.add_parser(
        "seed-achievements",
        help="Insert any missing default achievement definitions",
    )

    args = parser.parse_args()

    if args.command == "create-tables":
        return cmd_create_tables()
    elif args.command == "seed-achievements":
        return cmd_seed_achievements()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

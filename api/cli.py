#!/usr/bin/env python3
"""CLI for Project Ops API management tasks.

Usage:
    python -m cli <command>

Commands:
    create-tables  Create missing tables from the SQLAlchemy models
    check-db       Verify the configured database is reachable
"""

import argparse
import asyncio
import sys

from core.logger import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


async def _create_tables() -> None:
    from core.database import create_all, create_engine, dispose_engine

    engine = create_engine()
    try:
        await create_all(engine)
    finally:
        await dispose_engine(engine)


async def _check_db() -> None:
    from core.database import check_db_connection, create_engine, dispose_engine

    engine = create_engine()
    try:
        await check_db_connection(engine)
    finally:
        await dispose_engine(engine)


def cmd_create_tables() -> int:
    """Create database tables.

    create_all() only creates missing tables; it never alters existing ones.
    """
    logger.info("cli.create_tables.started")
    asyncio.run(_create_tables())
    logger.info("cli.create_tables.complete")
    return 0


def cmd_check_db() -> int:
    try:
        asyncio.run(_check_db())
    except Exception as e:
        logger.error("cli.check_db.failed", error=str(e))
        return 1
    logger.info("cli.check_db.ok")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Project Ops API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "create-tables",
        help="Create missing tables from the SQLAlchemy models",
    )
    subparsers.add_parser(
        "check-db",
        help="Verify the configured database is reachable",
    )

    args = parser.parse_args()

    if args.command == "create-tables":
        return cmd_create_tables()
    elif args.command == "check-db":
        return cmd_check_db()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

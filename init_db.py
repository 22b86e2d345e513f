"""Initialize the database schema for the candidate hub.

Creates the candidates table. The API also does this on startup unless
DB_CREATE_TABLES=false; run this script when that is disabled.

    python init_db.py          # create missing tables
    python init_db.py --drop   # drop and recreate (destroys data)
"""

import argparse
import asyncio
import sys

from hub.config import settings
from hub.db import engine, init_models


async def init_database(drop: bool) -> None:
    """Create all database tables."""
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")
    tables = await init_models(drop=drop)
    await engine.dispose()
    print(f"Tables ready: {', '.join(tables)}")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    try:
        asyncio.run(init_database(args.drop))
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

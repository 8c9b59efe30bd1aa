"""Create the storefront tables on a fresh local database (SQLite or Postgres).

Deployed databases are migrated with Alembic instead.
"""
import asyncio
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import close_db, engine, init_db


async def main() -> int:
    if engine is None:
        print("DATABASE_URL not configured")
        return 1

    print(f"Creating tables on {engine.url.render_as_string(hide_password=True)}...")
    await init_db()
    await close_db()
    print("✅ Tables created")
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

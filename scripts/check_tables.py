import asyncio
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect
from app.database import engine

EXPECTED_TABLES = {"purchase_histories", "admin_devices", "products"}


async def check_tables() -> int:
    if engine is None:
        print("DATABASE_URL not configured")
        return 1

    async with engine.connect() as conn:
        print("Checking tables...")
        tables = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        print(f"Found tables: {sorted(tables)}")

    await engine.dispose()

    missing = EXPECTED_TABLES - tables
    if missing:
        print(f"❌ Missing tables: {sorted(missing)}. Run the Alembic migrations.")
        return 1

    print("✅ All expected tables present")
    return 0

if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    sys.exit(asyncio.run(check_tables()))

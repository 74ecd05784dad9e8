# scripts/setup_progress_tracking.py
import asyncio
from sqlalchemy import inspect
from app.core.database import session_manager

REQUIRED_TABLES = {"team_metrics", "team_insights"}


async def setup_progress_tracking():
    """Create the progress tables (if missing) and verify they exist."""
    print("📊 Setting up team progress tracking...\n")

    # init() creates every registered table
    await session_manager.init()

    try:
        async with session_manager.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))

        missing = REQUIRED_TABLES - tables
        if missing:
            print(f"⚠️  Warning: Some tables are missing: {', '.join(sorted(missing))}")
            return False

        print("✅ All required tables exist:")
        for table in sorted(REQUIRED_TABLES):
            print(f"   - {table}")
        print("\n✅ Team progress tracking setup complete!")
        return True
    finally:
        await session_manager.close()


if __name__ == "__main__":
    asyncio.run(setup_progress_tracking())

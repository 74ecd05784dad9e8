# scripts/run_progress_now.py
import argparse
import asyncio
from app.core.database import session_manager
from app.utils.schedulers.progressscheduler import ProgressScheduler


async def run(cleanup: bool = False):
    """Recompute every team for the current week, optionally cleaning old insights."""
    await session_manager.init()
    scheduler = ProgressScheduler()

    try:
        result = await scheduler.run_progress_now()
        print(f"✅ Processed {result.processed}/{result.total} teams "
              f"for week {result.week_start.date()} - {result.week_end.date()}")

        if cleanup:
            deleted = await scheduler.cleanup_old_insights()
            print(f"🗑️  Cleaned up {deleted} old insights")
    finally:
        await session_manager.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the team progress calculation immediately")
    parser.add_argument("--cleanup", action="store_true", help="Also delete resolved insights past retention")
    args = parser.parse_args()
    asyncio.run(run(cleanup=args.cleanup))

"""Team Progress Scheduler for the classroom platform."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager, Awaitable, Callable, List, Optional

import pytz
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import session_manager
from app.models.base import utc_now
from app.schemas.progressSchema import ProcessAllResult, SchedulerJobStatus
from app.services.ProgressService import ProgressService, build_progress_service

logger = logging.getLogger(__name__)

# A cadence maps a naive local wall-clock time to the next fire time strictly after it
Cadence = Callable[[datetime], datetime]


def daily_at(hour: int, minute: int = 0) -> Cadence:
    """Once a day at hour:minute."""
    def next_run(now: datetime) -> datetime:
        candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate
    return next_run


def hourly_between(start_hour: int, end_hour: int) -> Cadence:
    """On the hour, for every hour from start_hour to end_hour inclusive."""
    if not 0 <= start_hour <= end_hour <= 23:
        raise ValueError(f"Invalid business-hours window: {start_hour}-{end_hour}")

    def next_run(now: datetime) -> datetime:
        candidate = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        while not start_hour <= candidate.hour <= end_hour:
            candidate += timedelta(hours=1)
        return candidate
    return next_run


def weekly_at(weekday: int, hour: int, minute: int = 0) -> Cadence:
    """Once a week on weekday (Monday == 0) at hour:minute."""
    def next_run(now: datetime) -> datetime:
        days_ahead = (weekday - now.weekday()) % 7
        candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0) + timedelta(days=days_ahead)
        if candidate <= now:
            candidate += timedelta(days=7)
        return candidate
    return next_run


@dataclass
class ScheduledJob:
    """One named recurring job owned by a ProgressScheduler."""
    name: str
    cadence: Cadence
    handler: Callable[[], Awaitable[Any]]
    loop_task: Optional[asyncio.Task] = None
    current_run: Optional[asyncio.Task] = None
    next_run: Optional[datetime] = None
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.loop_task is not None and not self.loop_task.done()


class ProgressScheduler:
    """
    Owns the recurring progress jobs and their start/stop lifecycle.

    Every job runs in its own asyncio task that sleeps until the next
    cadence slot and then invokes the handler. A handler failure is logged
    and the job keeps its cadence. Stopping a job only prevents future
    invocations: a run already in flight is allowed to finish.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], AsyncContextManager[AsyncSession]]] = None,
        service_factory: Callable[[AsyncSession], ProgressService] = build_progress_service,
        timezone: Optional[str] = None,
        jobs: Optional[List[ScheduledJob]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.session_factory = session_factory or session_manager.get_session
        self.service_factory = service_factory
        self.timezone = pytz.timezone(timezone or settings.SCHEDULER_TIMEZONE)
        self._clock = clock or (lambda: datetime.now(pytz.utc))
        self._sleep = sleep
        self.jobs = jobs if jobs is not None else self._build_default_jobs()

    def _build_default_jobs(self) -> List[ScheduledJob]:
        return [
            ScheduledJob(
                name="Daily Progress",
                cadence=daily_at(settings.DAILY_PROGRESS_HOUR),
                handler=self._daily_progress
            ),
            ScheduledJob(
                name="Hourly Progress",
                cadence=hourly_between(settings.HOURLY_PROGRESS_START_HOUR, settings.HOURLY_PROGRESS_END_HOUR),
                handler=self._hourly_progress
            ),
            ScheduledJob(
                name="Weekly Cleanup",
                cadence=weekly_at(settings.CLEANUP_WEEKDAY_NUMBER, settings.CLEANUP_HOUR),
                handler=self.cleanup_old_insights
            ),
        ]

    # ------------------------------
    # Job handlers
    # ------------------------------
    async def run_progress_now(self) -> ProcessAllResult:
        """Process all teams immediately. Failures propagate to the caller."""
        logger.info("▶️ Running progress calculation immediately...")
        async with self.session_factory() as db:
            service = self.service_factory(db)
            result = await service.process_all_teams()
        logger.info(f"✅ Processed {result.processed}/{result.total} teams")
        return result

    async def cleanup_old_insights(self) -> int:
        """Delete resolved insights older than the retention window."""
        logger.info("⏰ Running weekly cleanup...")
        async with self.session_factory() as db:
            service = self.service_factory(db)
            return await service.cleanup_old_insights(settings.INSIGHT_RETENTION_DAYS)

    async def _daily_progress(self) -> ProcessAllResult:
        logger.info("⏰ Running daily progress calculation...")
        return await self.run_progress_now()

    async def _hourly_progress(self) -> ProcessAllResult:
        logger.info("⏰ Running hourly progress update...")
        return await self.run_progress_now()

    # ------------------------------
    # Lifecycle
    # ------------------------------
    def _local_now(self) -> datetime:
        return self._clock().astimezone(self.timezone).replace(tzinfo=None)

    def _seconds_until(self, now: datetime, fire_at: datetime) -> float:
        delta = self.timezone.localize(fire_at) - self.timezone.localize(now)
        return max(delta.total_seconds(), 0.0)

    async def _invoke(self, job: ScheduledJob):
        job.last_run = utc_now()
        try:
            await job.handler()
            job.last_error = None
            logger.info(f"✅ {job.name} completed")
        except Exception as e:
            job.last_error = str(e)
            logger.error(f"❌ {job.name} failed: {e}")

    async def _run_job(self, job: ScheduledJob):
        last_fire: Optional[datetime] = None

        while True:
            now = self._local_now()
            base = max(now, last_fire) if last_fire else now
            fire_at = job.cadence(base)
            job.next_run = fire_at

            await self._sleep(self._seconds_until(now, fire_at))
            last_fire = fire_at

            job.current_run = asyncio.create_task(self._invoke(job))
            await asyncio.shield(job.current_run)

    def get_job(self, name: str) -> ScheduledJob:
        for job in self.jobs:
            if job.name == name:
                return job
        raise KeyError(f"Unknown scheduler job: {name}")

    def start_job(self, name: str):
        job = self.get_job(name)
        if job.running:
            return
        job.loop_task = asyncio.create_task(self._run_job(job), name=f"progress-job:{name}")
        logger.info(f"   - {name}")

    async def stop_job(self, name: str):
        job = self.get_job(name)
        if job.loop_task is not None and not job.loop_task.done():
            job.loop_task.cancel()
            try:
                await job.loop_task
            except asyncio.CancelledError:
                pass
        job.loop_task = None
        job.next_run = None

        if job.current_run is not None and not job.current_run.done():
            logger.info(f"⏳ Waiting for in-flight {name} run to finish...")
            await job.current_run
        logger.info(f"   ✅ Stopped: {name}")

    def start(self):
        logger.info("🕐 Starting progress scheduler jobs...")
        for job in self.jobs:
            self.start_job(job.name)
        logger.info(f"✅ Started {len(self.jobs)} scheduler jobs (timezone: {self.timezone})")

    async def stop(self):
        logger.info("🛑 Stopping progress scheduler jobs...")
        for job in self.jobs:
            await self.stop_job(job.name)

    @property
    def running_jobs(self) -> int:
        return len([job for job in self.jobs if job.running])

    def get_status(self) -> List[SchedulerJobStatus]:
        return [
            SchedulerJobStatus(
                name=job.name,
                running=job.running,
                next_run=job.next_run,
                last_run=job.last_run,
                last_error=job.last_error
            )
            for job in self.jobs
        ]

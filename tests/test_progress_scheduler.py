"""Tests for the progress scheduler cadences, lifecycle and handlers."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest
import pytz

from app.schemas.progressSchema import ProcessAllResult
from app.utils.schedulers.progressscheduler import (
    ProgressScheduler,
    ScheduledJob,
    daily_at,
    hourly_between,
    weekly_at,
)
from tests.conftest import WEEK_END, WEEK_START

SUNDAY = 6


class TestCadences:
    def test_daily(self):
        cadence = daily_at(2)
        assert cadence(datetime(2026, 10, 14, 1, 30)) == datetime(2026, 10, 14, 2, 0)
        assert cadence(datetime(2026, 10, 14, 2, 0)) == datetime(2026, 10, 15, 2, 0)
        assert cadence(datetime(2026, 10, 14, 23, 59)) == datetime(2026, 10, 15, 2, 0)

    def test_hourly_inside_business_hours(self):
        cadence = hourly_between(8, 20)
        assert cadence(datetime(2026, 10, 14, 7, 15)) == datetime(2026, 10, 14, 8, 0)
        assert cadence(datetime(2026, 10, 14, 12, 0)) == datetime(2026, 10, 14, 13, 0)
        assert cadence(datetime(2026, 10, 14, 19, 59)) == datetime(2026, 10, 14, 20, 0)
        assert cadence(datetime(2026, 10, 14, 20, 30)) == datetime(2026, 10, 15, 8, 0)

    def test_hourly_rejects_inverted_window(self):
        with pytest.raises(ValueError):
            hourly_between(21, 8)

    def test_weekly(self):
        cadence = weekly_at(SUNDAY, 0)
        assert cadence(datetime(2026, 10, 14, 10, 0)) == datetime(2026, 10, 18, 0, 0)
        assert cadence(datetime(2026, 10, 18, 0, 0)) == datetime(2026, 10, 25, 0, 0)
        assert cadence(datetime(2026, 10, 17, 23, 59)) == datetime(2026, 10, 18, 0, 0)

    @pytest.mark.parametrize("cadence", [daily_at(2), hourly_between(8, 20), weekly_at(SUNDAY, 0)])
    def test_always_strictly_later(self, cadence):
        now = datetime(2026, 10, 14, 0, 0)
        for _ in range(50):
            following = cadence(now)
            assert following > now
            now = following


class FakeService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.runs = 0
        self.retention_days = []

    async def process_all_teams(self):
        self.runs += 1
        if self.fail:
            raise RuntimeError("database unavailable")
        return ProcessAllResult(processed=2, total=2, week_start=WEEK_START, week_end=WEEK_END)

    async def cleanup_old_insights(self, retention_days):
        self.retention_days.append(retention_days)
        return 4


def scheduler_with(service, **kwargs) -> ProgressScheduler:
    sessions = []

    @asynccontextmanager
    async def session_factory():
        sessions.append("db")
        yield "db"

    return ProgressScheduler(
        session_factory=session_factory,
        service_factory=lambda db: service,
        **kwargs
    )


def fixed_clock():
    return datetime(2026, 10, 14, 12, 0, tzinfo=pytz.utc)


async def no_wait(seconds):
    await asyncio.sleep(0)


class TestHandlers:
    def test_run_progress_now_returns_batch_result(self):
        async def run():
            service = FakeService()
            result = await scheduler_with(service).run_progress_now()
            assert (result.processed, result.total) == (2, 2)
            assert service.runs == 1

        asyncio.run(run())

    def test_run_progress_now_propagates_failures(self):
        async def run():
            with pytest.raises(RuntimeError):
                await scheduler_with(FakeService(fail=True)).run_progress_now()

        asyncio.run(run())

    def test_cleanup_uses_retention_setting(self):
        async def run():
            service = FakeService()
            deleted = await scheduler_with(service).cleanup_old_insights()
            assert deleted == 4
            assert service.retention_days == [30]

        asyncio.run(run())


class TestLifecycle:
    def test_default_jobs(self):
        scheduler = scheduler_with(FakeService())
        assert [job.name for job in scheduler.jobs] == ["Daily Progress", "Hourly Progress", "Weekly Cleanup"]
        assert scheduler.running_jobs == 0
        assert all(status.running is False for status in scheduler.get_status())

    def test_unknown_job(self):
        with pytest.raises(KeyError):
            scheduler_with(FakeService()).get_job("Monthly Report")

    def test_start_and_stop_individual_jobs(self):
        async def run():
            scheduler = scheduler_with(FakeService(), clock=fixed_clock)
            scheduler.start()
            await asyncio.sleep(0)
            assert scheduler.running_jobs == 3

            hourly = scheduler.get_job("Hourly Progress")
            assert hourly.next_run == datetime(2026, 10, 14, 13, 0)

            await scheduler.stop_job("Hourly Progress")
            statuses = {status.name: status.running for status in scheduler.get_status()}
            assert statuses == {"Daily Progress": True, "Hourly Progress": False, "Weekly Cleanup": True}

            await scheduler.stop()
            assert scheduler.running_jobs == 0

        asyncio.run(run())

    def test_failing_handler_keeps_its_cadence(self):
        async def run():
            calls = []
            third_call = asyncio.Event()

            async def flaky():
                calls.append(1)
                if len(calls) == 1:
                    raise RuntimeError("first run fails")
                if len(calls) >= 3:
                    third_call.set()

            job = ScheduledJob(name="Flaky", cadence=lambda now: now + timedelta(minutes=1), handler=flaky)
            scheduler = scheduler_with(FakeService(), jobs=[job], clock=fixed_clock, sleep=no_wait)

            scheduler.start()
            await asyncio.wait_for(third_call.wait(), timeout=5)
            await scheduler.stop()

            assert len(calls) >= 3
            assert job.running is False
            assert job.last_error is None
            assert job.last_run is not None

        asyncio.run(run())

    def test_failure_is_recorded_on_the_job(self):
        async def run():
            failed = asyncio.Event()

            async def broken():
                failed.set()
                raise RuntimeError("boom")

            job = ScheduledJob(name="Broken", cadence=lambda now: now + timedelta(hours=1), handler=broken)
            scheduler = scheduler_with(FakeService(), jobs=[job], clock=fixed_clock, sleep=no_wait)

            scheduler.start()
            await asyncio.wait_for(failed.wait(), timeout=5)
            await asyncio.sleep(0)
            await scheduler.stop()

            assert job.last_error == "boom"
            assert scheduler.get_status()[0].last_error == "boom"

        asyncio.run(run())

    def test_stop_lets_in_flight_run_finish(self):
        async def run():
            started = asyncio.Event()
            release = asyncio.Event()
            finished = []

            async def slow():
                started.set()
                await release.wait()
                finished.append(True)

            job = ScheduledJob(name="Slow", cadence=lambda now: now + timedelta(minutes=1), handler=slow)
            scheduler = scheduler_with(FakeService(), jobs=[job], clock=fixed_clock, sleep=no_wait)

            scheduler.start()
            await asyncio.wait_for(started.wait(), timeout=5)

            stopping = asyncio.create_task(scheduler.stop())
            for _ in range(5):
                await asyncio.sleep(0)
            assert not stopping.done()
            assert finished == []

            release.set()
            await asyncio.wait_for(stopping, timeout=5)

            assert finished == [True]
            assert job.running is False
            assert job.current_run.done()

        asyncio.run(run())

"""Tests for the periodic dispatch job."""
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from core.scheduler import JOB_ID, _run_tick, schedule_dispatch


class StubDispatcher:
    def __init__(self, error=None):
        self.ticks = 0
        self.error = error

    def run_tick(self):
        self.ticks += 1
        if self.error:
            raise self.error


def test_job_is_never_reentered():
    scheduler = BackgroundScheduler(timezone="UTC")
    schedule_dispatch(scheduler, StubDispatcher(), interval_seconds=5)
    job = scheduler.get_job(JOB_ID)
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.trigger.interval == timedelta(seconds=5)


def test_run_tick_swallows_crash(caplog):
    dispatcher = StubDispatcher(error=RuntimeError("boom"))
    _run_tick(dispatcher)
    assert dispatcher.ticks == 1
    assert "boom" in caplog.text

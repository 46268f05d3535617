"""Run the dispatcher on a fixed cadence.

A single interval job drives every tick. ``max_instances=1`` keeps a slow
tick from being re-entered and ``coalesce`` folds any runs it overlapped into
one, so the next tick only starts after the previous one returned.
"""

import time
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from core.config import Config
from core.dispatcher import Dispatcher
from core.logger import get_logger
from core.post_store import PostStore
from poster.signal_poster import SignalClient

log = get_logger("DispatchScheduler")

JOB_ID = "dispatch_due_posts"


def build_dispatcher() -> Dispatcher:
    return Dispatcher(PostStore(), SignalClient())


def _run_tick(dispatcher: Dispatcher) -> None:
    log.debug("Running scheduled check...")
    try:
        dispatcher.run_tick()
    except Exception as exc:  # noqa: BLE001 - a broken tick must not kill the job.
        log.error(f"Dispatch tick crashed: {exc}")


def schedule_dispatch(
    scheduler: BackgroundScheduler,
    dispatcher: Dispatcher,
    interval_seconds: int | None = None,
    run_immediately: bool = True,
):
    """Register the periodic dispatch job and return it."""

    interval = interval_seconds or Config.POLL_INTERVAL_SECONDS
    job_kwargs = {}
    if run_immediately:
        job_kwargs["next_run_time"] = datetime.now(timezone.utc)

    job = scheduler.add_job(
        _run_tick,
        "interval",
        seconds=interval,
        args=[dispatcher],
        id=JOB_ID,
        name="dispatch_due_posts",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        **job_kwargs,
    )
    log.info(f"Dispatch job registered every {interval}s")
    return job


def start_dispatch_scheduler(dispatcher: Dispatcher | None = None) -> None:
    """Main entry point used by the CLI to launch the background dispatcher."""

    log.info("Starting Signal Scheduler...")
    dispatcher = dispatcher or build_dispatcher()

    scheduler = BackgroundScheduler(timezone="UTC")
    try:
        schedule_dispatch(scheduler, dispatcher)
        scheduler.start()
    except Exception as exc:  # noqa: BLE001 - ensure failure is surfaced cleanly.
        log.error(f"Failed to start scheduler: {exc}")
        return

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        log.warning("Scheduler stopped manually.")
    finally:
        # Let an in-flight tick finish so its outcome is committed.
        scheduler.shutdown(wait=True)

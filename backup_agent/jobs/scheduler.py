"""APScheduler setup for the backup and cleanup jobs."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from backup_agent.config import Settings, get_settings
from backup_agent.jobs.backup_job import run_job
from backup_agent.jobs.cleanup import run_delete_job

logger = logging.getLogger(__name__)

BACKUP_JOB_ID = "backup"
CLEANUP_JOB_ID = "cleanup"

# Field order of a 6 or 7 field expression, seconds first
CRON_FIELDS = ("second", "minute", "hour", "day", "month", "day_of_week", "year")
CRONTAB_FIELDS = ("minute", "hour", "day", "month", "day_of_week")


def cron_trigger(expression: str, timezone: str = "UTC") -> CronTrigger:
    """Build a CronTrigger from a cron expression.

    Accepts ``sec min hour day month weekday [year]`` or a classic
    five-field crontab line. A bare ``?`` in the day or weekday field
    means "no specific value" and is read as ``*``. Raises ValueError for
    anything else.
    """
    fields = expression.split()
    if len(fields) == 5:
        values = dict(zip(CRONTAB_FIELDS, fields))
    elif len(fields) in (6, 7):
        values = dict(zip(CRON_FIELDS, fields))
    else:
        raise ValueError(
            f"Invalid cron expression {expression!r}: expected 5, 6 or 7 fields, got {len(fields)}"
        )

    for name in ("day", "day_of_week"):
        if values[name] == "?":
            values[name] = "*"

    return CronTrigger(timezone=timezone, **values)


async def run_tick(
    scheduler: Any,
    job_id: str,
    label: str,
    action: Callable[[], Awaitable[Any]],
) -> None:
    """Run one job action and log the outcome and the next run time.

    Errors never leave this function, so one job failing cannot disturb
    the other job's schedule.
    """
    try:
        await action()
        logger.info(f"{label.capitalize()} job completed successfully")
    except Exception as e:
        logger.exception(f"{label.capitalize()} job failed: {e}")

    log_next_run(scheduler, job_id, label)


def log_next_run(scheduler: Any, job_id: str, label: str) -> None:
    try:
        job = scheduler.get_job(job_id)
        next_run = job.next_run_time if job is not None else None
    except Exception as e:
        logger.warning(f"Could not determine next {label} time: {e}")
        return

    if next_run is None:
        logger.warning(f"Could not determine next {label} time")
    else:
        logger.info(f"Next {label} scheduled for: {next_run.isoformat()}")


def setup_scheduler(settings: Optional[Settings] = None) -> AsyncIOScheduler:
    """Set up and start the scheduler with the backup and cleanup jobs.

    Both cron expressions are parsed before anything is registered, so a
    malformed expression fails before any job can run.
    """
    settings = settings or get_settings()

    backup_trigger = cron_trigger(settings.backup_cron, settings.scheduler_timezone)
    cleanup_trigger = cron_trigger(settings.clean_cron, settings.scheduler_timezone)

    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)

    # Database backup - BACKUP_CRON, roughly every 23 hours by default
    scheduler.add_job(
        run_tick,
        trigger=backup_trigger,
        args=[scheduler, BACKUP_JOB_ID, "backup", run_job],
        id=BACKUP_JOB_ID,
        name="Database Backup",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    # Remote retention - CLEAN_CRON, Saturday 06:00 by default
    scheduler.add_job(
        run_tick,
        trigger=cleanup_trigger,
        args=[scheduler, CLEANUP_JOB_ID, "cleanup", run_delete_job],
        id=CLEANUP_JOB_ID,
        name="Backup Retention Cleanup",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started (backup: '{settings.backup_cron}', "
        f"cleanup: '{settings.clean_cron}', tz: {settings.scheduler_timezone})"
    )

    for job_id, label in ((BACKUP_JOB_ID, "backup"), (CLEANUP_JOB_ID, "cleanup")):
        log_next_run(scheduler, job_id, label)

    return scheduler


async def run_forever(heartbeat_seconds: int, stop: Optional[asyncio.Event] = None) -> None:
    """Block until ``stop`` is set, logging a heartbeat periodically."""
    stop = stop or asyncio.Event()
    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=heartbeat_seconds)
        except asyncio.TimeoutError:
            logger.info("Scheduler is running...")


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    """Shutdown the scheduler without waiting for running jobs."""
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

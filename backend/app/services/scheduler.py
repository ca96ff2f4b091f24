"""
Background Job Scheduler.

WHAT: Configures and manages the APScheduler instance that runs deferred
tasks (PDF generation, billing emails).

WHY: Sending a quote or changing an invoice status must return to the
admin immediately; the slow work (rendering the PDF, calling the email
provider) runs later on the scheduler, outside the request.

HOW: A single AsyncIOScheduler with an in-memory job store, started on
application startup. The task queue (app.services.task_queue) adds one
DateTrigger job per task.

Example:
    # In main.py startup and shutdown hooks:
    from app.services.scheduler import start_scheduler, shutdown_scheduler

    await start_scheduler()
    ...
    await shutdown_scheduler()
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor


logger = logging.getLogger(__name__)


# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


def _create_scheduler() -> AsyncIOScheduler:
    jobstores = {"default": MemoryJobStore()}
    executors = {"default": AsyncIOExecutor()}
    job_defaults = {
        "coalesce": False,  # every deferred task runs, even if late
        "max_instances": 1,
        "misfire_grace_time": 300,
    }
    return AsyncIOScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone="UTC",
    )


def ensure_scheduler() -> AsyncIOScheduler:
    """
    Return the running scheduler, creating and starting it if needed.

    Must be called from inside a running event loop.
    """
    global _scheduler

    if _scheduler is None:
        _scheduler = _create_scheduler()
    if not _scheduler.running:
        _scheduler.start()
        logger.info("Scheduler started")
    return _scheduler


async def start_scheduler() -> None:
    """
    Start the background job scheduler.

    Note: Call this from the FastAPI startup hook.
    """
    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running")
        return
    ensure_scheduler()


async def shutdown_scheduler() -> None:
    """
    Shut down the background job scheduler.

    Jobs still pending in the in-memory store are dropped; tasks that are
    already running are awaited.
    """
    global _scheduler

    if _scheduler is None:
        logger.info("Scheduler not running")
        return

    if not _scheduler.running:
        logger.info("Scheduler already stopped")
        _scheduler = None
        return

    pending = len(_scheduler.get_jobs())
    if pending:
        logger.warning(f"Shutting down scheduler with {pending} pending task(s)")
    else:
        logger.info("Shutting down scheduler...")
    _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Scheduler shut down successfully")


def get_scheduler_status() -> dict:
    """
    Get scheduler status information.

    WHY: Exposed by the health endpoint.

    Returns:
        Dict with scheduler status and job details
    """
    if _scheduler is None:
        return {
            "running": False,
            "jobs": [],
            "message": "Scheduler not initialized",
        }

    jobs = []
    for job in _scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if job.next_run_time else None,
            "trigger": str(job.trigger),
        })

    return {
        "running": _scheduler.running,
        "jobs": jobs,
        "message": "Scheduler is running" if _scheduler.running else "Scheduler is paused",
    }

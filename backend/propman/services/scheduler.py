"""
Background job scheduler.

WHAT: Configures APScheduler to take periodic backups of the store.

WHY: Pre-migration and initial-setup backups only happen at startup. A
long-running install also needs backups taken while it is up, without
anyone pressing a button.

HOW: AsyncIOScheduler with an in-memory job store; one interval job that
calls DatabaseBackupService.create_backup("Scheduled"). The backup
service prunes old files itself, so the job does nothing else.

Example:
    # In the application lifespan:
    await start_scheduler(backup_service)
    ...
    await shutdown_scheduler()
"""

import logging
from typing import Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from propman.core.config import Settings, settings as default_settings
from propman.services.backup_service import BackupReason, DatabaseBackupService

logger = logging.getLogger(__name__)

SCHEDULED_BACKUP_JOB_ID = "scheduled_backup"

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the global scheduler instance."""
    return _scheduler


async def run_scheduled_backup(backup_service: DatabaseBackupService) -> None:
    path = await backup_service.create_backup(BackupReason.SCHEDULED)
    if path is None:
        logger.error("Scheduled backup failed")


async def start_scheduler(
    backup_service: DatabaseBackupService, settings: Optional[Settings] = None
) -> Optional[AsyncIOScheduler]:
    """
    Start the scheduler if scheduled backups are enabled.

    Returns:
        The running scheduler, or None when SCHEDULED_BACKUP_ENABLED is off
    """
    global _scheduler
    settings = settings or default_settings

    if not settings.SCHEDULED_BACKUP_ENABLED:
        logger.info("Scheduled backups disabled")
        return None

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running")
        return _scheduler

    _scheduler = AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,  # Combine multiple missed runs into one
            "max_instances": 1,  # A backup never overlaps another
            "misfire_grace_time": 300,
        },
        timezone="UTC",
    )

    _scheduler.add_job(
        func=run_scheduled_backup,
        args=[backup_service],
        trigger=IntervalTrigger(hours=settings.SCHEDULED_BACKUP_INTERVAL_HOURS),
        id=SCHEDULED_BACKUP_JOB_ID,
        name="Scheduled Database Backup",
        replace_existing=True,
    )

    _scheduler.start()
    logger.info(
        f"Scheduler started with backups every {settings.SCHEDULED_BACKUP_INTERVAL_HOURS} hours"
    )
    return _scheduler


async def shutdown_scheduler() -> None:
    """Stop the scheduler, waiting for a running backup to finish."""
    global _scheduler

    if _scheduler is None:
        logger.info("Scheduler not running")
        return

    if _scheduler.running:
        logger.info("Shutting down scheduler...")
        _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Scheduler shut down")


def get_scheduler_status() -> dict:
    """
    Scheduler state and registered jobs, for the admin health endpoint.
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

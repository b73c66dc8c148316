"""
Background Task Scheduler for maintenance jobs.

Uses APScheduler for reliable scheduled task execution.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from models.config import settings
from repositories.database import session_scope

# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def maintenance_job() -> dict:
    """
    Scheduled job running every maintenance step.

    Creates its own database session for isolation.
    """
    from services.retention_service import RetentionService

    logger.info("Running scheduled maintenance job")

    try:
        with session_scope() as db:
            return RetentionService.run_all_jobs(db)
    except Exception as e:
        logger.error(f"Maintenance job failed: {e}")
        raise


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Maintenance: daily at MAINTENANCE_HOUR (UTC)
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        maintenance_job,
        CronTrigger(hour=settings.MAINTENANCE_HOUR, minute=0),
        id="maintenance",
        name="Nightly Maintenance",
        replace_existing=True,
        misfire_grace_time=3600,  # 1 hour grace for missed jobs
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started with maintenance at "
        f"{settings.MAINTENANCE_HOUR:02d}:00 UTC"
    )


def shutdown_scheduler() -> None:
    """Gracefully shutdown the scheduler."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
    scheduler = None


def get_scheduler_status() -> dict:
    """Get current scheduler status for monitoring."""
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": (
                job.next_run_time.isoformat() if job.next_run_time else None
            ),
        }
        for job in scheduler.get_jobs()
    ]
    return {"running": scheduler.running, "jobs": jobs}

"""
Background Task Scheduler for Moderation Maintenance.

Uses APScheduler for reliable scheduled task execution.
Temporary bans are also lifted lazily when a banned user makes a request;
these jobs make the stored state catch up for users who never come back.
"""

from datetime import timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from core.correlation import correlation_scope
from models.config import settings
from repositories.database import SessionLocal


# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def expired_bans_job() -> None:
    """
    Scheduled job lifting temporary bans that have run out.

    Creates its own database session for isolation.
    """
    from services.maintenance_service import MaintenanceService

    with correlation_scope("job"):
        db = SessionLocal()
        try:
            count = MaintenanceService.reconcile_expired_bans(db)
            logger.info(f"Expired ban job completed: {count} user(s) unbanned")
        except Exception as e:
            logger.error(f"Expired ban job failed: {e}")
            raise
        finally:
            db.close()


def strike_cleanup_job() -> None:
    """
    Scheduled job deleting expired strikes.

    Creates its own database session for isolation.
    """
    from services.maintenance_service import MaintenanceService

    with correlation_scope("job"):
        db = SessionLocal()
        try:
            results = MaintenanceService.cleanup_expired_strikes(db)
            logger.info(f"Strike cleanup job completed: {results}")
        except Exception as e:
            logger.error(f"Strike cleanup job failed: {e}")
            raise
        finally:
            db.close()


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Expired bans: every EXPIRED_BANS_INTERVAL_MINUTES (30 by default)
    - Expired strikes: daily at STRIKE_CLEANUP_HOUR_UTC (03:00 UTC by default)
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler(timezone=timezone.utc)

    scheduler.add_job(
        expired_bans_job,
        IntervalTrigger(minutes=settings.EXPIRED_BANS_INTERVAL_MINUTES),
        id="process_expired_bans",
        name="Lift Expired Bans",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.add_job(
        strike_cleanup_job,
        CronTrigger(hour=settings.STRIKE_CLEANUP_HOUR_UTC, minute=0),
        id="cleanup_user_strikes",
        name="Expired Strike Cleanup",
        replace_existing=True,
        misfire_grace_time=3600,  # 1 hour grace for missed jobs
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started: expired bans every "
        f"{settings.EXPIRED_BANS_INTERVAL_MINUTES} min, strike cleanup at "
        f"{settings.STRIKE_CLEANUP_HOUR_UTC:02d}:00 UTC"
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

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
        )

    return {"running": scheduler.running, "jobs": jobs}

"""
Background scheduler for counter reconciliation.

Uses APScheduler to drain the engagement outbox at a fixed interval and
repair any counter drift it finds.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from core.correlation import correlation_scope
from models.config import settings
from repositories.database import SessionLocal


# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def reconciliation_job() -> dict:
    """
    Scheduled job to reconcile one outbox batch.

    Creates its own database session for isolation.
    """
    from services.reconciliation_service import ReconciliationService

    logger.debug("Running scheduled reconciliation job")

    with correlation_scope():
        db = SessionLocal()
        try:
            report = ReconciliationService.process_outbox(
                db, batch_size=settings.RECONCILIATION_BATCH_SIZE
            )
            return {
                "events_processed": report.events_processed,
                "items_checked": report.items_checked,
                "items_corrected": report.items_corrected,
            }
        except Exception as e:
            db.rollback()
            logger.error(f"Reconciliation job failed: {e!r}")
            raise
        finally:
            db.close()


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Counter reconciliation: every RECONCILIATION_INTERVAL_MINUTES
    """
    global scheduler

    if not settings.RECONCILIATION_ENABLED:
        logger.info("Reconciliation disabled; scheduler not started")
        return

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        reconciliation_job,
        IntervalTrigger(minutes=settings.RECONCILIATION_INTERVAL_MINUTES),
        id="counter_reconciliation",
        name="Counter Reconciliation",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started with reconciliation every "
        f"{settings.RECONCILIATION_INTERVAL_MINUTES} minutes"
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

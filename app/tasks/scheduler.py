"""
Background job scheduler for the escalation sweep.

Uses APScheduler to run the escalation rules against open tickets every
ESCALATION_SWEEP_MINUTES minutes.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.database import AsyncSessionLocal
from app.services.escalation import EscalationService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def escalation_sweep_job() -> int:
    """
    Escalate overdue tickets in one transaction.

    Returns:
        Number of tickets escalated
    """
    logger.info("Starting escalation sweep")

    async with AsyncSessionLocal() as db:
        try:
            escalated = await EscalationService(db).sweep()
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Escalation sweep failed: {e}", exc_info=True)
            raise

    logger.info(f"Escalation sweep complete: escalated={escalated}")
    return escalated


def setup_scheduler():
    """
    Configure and start the background scheduler.

    Does nothing when ESCALATION_SWEEP_ENABLED is false or the scheduler
    is already running.
    """
    if not settings.ESCALATION_SWEEP_ENABLED:
        logger.info("Escalation sweep disabled; scheduler not started")
        return

    if scheduler.running:
        logger.warning("Scheduler is already running")
        return

    scheduler.add_job(
        escalation_sweep_job,
        IntervalTrigger(minutes=settings.ESCALATION_SWEEP_MINUTES),
        id="escalation_sweep",
        name="Ticket Escalation Sweep",
        replace_existing=True,
        misfire_grace_time=300,
        coalesce=True,
        max_instances=1
    )

    scheduler.start()
    logger.info(f"Background scheduler started (sweep every {settings.ESCALATION_SWEEP_MINUTES} min)")


def shutdown_scheduler():
    """Stop the scheduler, waiting for a running sweep to finish."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
    else:
        logger.info("Scheduler was not running")


def get_job_status() -> list:
    """
    Get status of all scheduled jobs.

    Returns:
        List of dicts with id, name, next_run (ISO string or None), trigger
    """
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger)
        }
        for job in scheduler.get_jobs()
    ]

"""DONQ — Scheduler Jobs.

APScheduler interval job that polls Extra Life for new donations.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from donq.config import settings
from donq.dependencies import get_donation_service
from donq.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def poll_donations_job():
    """Fetch and reconcile the configured team's donations."""
    try:
        report = await get_donation_service().fetch_and_reconcile()
        if report.inserted_count:
            logger.info(
                f"Poll found {report.inserted_count} new donations",
                extra={"team_id": report.team_id, "count": report.inserted_count},
            )
    except Exception as e:
        # Keep the poll alive; the next tick retries
        logger.error(f"Scheduled donation poll failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.poll_enabled:
        logger.info("Donation polling disabled via config")
        return

    scheduler.add_job(
        poll_donations_job,
        "interval",
        seconds=settings.poll_interval_seconds,
        id="poll_donations",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Polling team {settings.team_id} "
        f"every {settings.poll_interval_seconds}s"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

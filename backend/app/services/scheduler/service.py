"""
Scheduler Service - Background scheduler lifecycle management
Handles starting, stopping, and configuring the APScheduler instance
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.triggers.cron import CronTrigger

from app.core.constants import CLOCK_REFRESH_INTERVAL_MINUTES, ORDER_EXPIRY_CHECK_INTERVAL_MINUTES
from app.utils.timezone import IST_TZ
from .jobs import daily_rollover, expire_stale_orders, refresh_server_clock

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def start_scheduler():
    """
    Start the background scheduler
    All triggers run in IST so "midnight" means the users' midnight
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return

    scheduler = BackgroundScheduler(timezone=IST_TZ)

    scheduler.add_job(
        func=daily_rollover,
        trigger=CronTrigger(hour=0, minute=0, timezone=IST_TZ),
        id='daily_rollover',
        name='Reset streaks for users who missed yesterday',
        replace_existing=True
    )

    scheduler.add_job(
        func=refresh_server_clock,
        trigger=IntervalTrigger(minutes=CLOCK_REFRESH_INTERVAL_MINUTES),
        id='refresh_server_clock',
        name='Refresh verified server date',
        replace_existing=True
    )

    scheduler.add_job(
        func=expire_stale_orders,
        trigger=IntervalTrigger(minutes=ORDER_EXPIRY_CHECK_INTERVAL_MINUTES),
        id='expire_stale_orders',
        name='Expire unpaid payment orders',
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"Scheduler started - rollover at 00:00 IST, clock refresh every "
        f"{CLOCK_REFRESH_INTERVAL_MINUTES} min, order expiry every {ORDER_EXPIRY_CHECK_INTERVAL_MINUTES} min"
    )


def stop_scheduler():
    """Stop the background scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")

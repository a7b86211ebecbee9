"""
Scheduler Job Definitions
Contains the scheduled maintenance jobs: streak rollover, clock refresh
and order expiry
"""
from datetime import date, timedelta
import logging

from app.core.config import settings
from app.services.clock import server_clock
from app.services.habits import repository as habits_repository
from app.services.payments import service as payments_service
from app.services.rewards import repository as rewards_repository
from app.services.rewards.ledger import update_streaks_with_retry

logger = logging.getLogger(__name__)


def daily_rollover():
    """
    Reset the streak of every user who completed nothing yesterday
    Called once daily at 00:00 IST; users who already completed something
    today keep their streak
    """
    try:
        logger.info("[SCHEDULER] Running daily streak rollover...")

        # The cached date may still be the day that just ended
        today = date.fromisoformat(server_clock.force_verify())
        yesterday = today - timedelta(days=1)
        active_users = set(habits_repository.get_users_completed_on(yesterday))
        active_users.update(habits_repository.get_users_completed_on(today))

        reset_count = 0
        for rewards in rewards_repository.list_rewards_with_streak():
            user_id = rewards["user_id"]
            if user_id in active_users:
                continue

            try:
                update_streaks_with_retry(user_id, 0)
                reset_count += 1
                logger.info(f"[SCHEDULER] Streak reset for user {user_id} (was {rewards['current_streak']})")
            except Exception as e:
                logger.error(f"[SCHEDULER] Failed to reset streak for user {user_id}: {e}")

        logger.info(f"[SCHEDULER] Daily rollover completed, {reset_count} streak(s) reset")

    except Exception as e:
        logger.error(f"[SCHEDULER] Error in daily_rollover: {e}", exc_info=True)


def refresh_server_clock():
    """
    Re-verify today's date so request handlers hit a warm cache
    """
    try:
        verified = server_clock.force_verify()
        logger.info(f"[SCHEDULER] Server clock refreshed: {verified} ({server_clock.status})")
    except Exception as e:
        logger.error(f"[SCHEDULER] Error in refresh_server_clock: {e}", exc_info=True)


def expire_stale_orders():
    """
    Expire Razorpay orders that stayed unpaid past the expiry window
    """
    try:
        expired = payments_service.expire_stale_orders(settings.ORDER_EXPIRY_HOURS)
        if expired:
            logger.info(f"[SCHEDULER] Expired {expired} stale payment order(s)")
    except Exception as e:
        logger.error(f"[SCHEDULER] Error in expire_stale_orders: {e}", exc_info=True)

"""
XP & Level System

XP Earning Rules:
- +10 XP per habit completed (once per day per habit)
- +25 XP for achievement unlocked
- +50 XP for weekly challenge completed
- Bonus XP when a streak reaches 3, 7, 14 or 30 days
"""
from datetime import date
from typing import Any, Dict, List
import logging

from app.core.constants import STREAK_XP_BONUSES, XP_REWARDS
from app.core.exceptions import SadhanaException
from app.models.rewards import RewardsUpdate
from . import repository
from .awards import grant_habit_award, revoke_habit_award
from .ledger import update_rewards_with_retry
from .levels import calculate_level, get_level_progress

logger = logging.getLogger(__name__)


def _xp_update(amount: int) -> RewardsUpdate:
    return RewardsUpdate(xp_delta=amount)


def award_habit_xp(user_id: str, habit_id: str, award_date: date) -> Dict[str, Any]:
    """
    Award XP for completing a habit (once per habit per day)

    Returns:
        Dict with success, message, amount, and rewards (level info) when granted
    """
    result = grant_habit_award(
        "xp_awards", "xp_awarded", user_id, habit_id, award_date,
        XP_REWARDS["HABIT_COMPLETED"], _xp_update, "XP"
    )
    rewards = result.get("rewards")
    if rewards and rewards["leveled_up"]:
        result["message"] = f"Level up! You're now level {rewards['level']}!"
    return result


def deduct_habit_xp(user_id: str, habit_id: str, award_date: date) -> Dict[str, Any]:
    """Take back the XP awarded for a habit on a day"""
    return revoke_habit_award(
        "xp_awards", "xp_awarded", user_id, habit_id, award_date,
        _xp_update, "xp", "XP"
    )


def award_achievement_xp(user_id: str) -> Dict[str, Any]:
    """Grant the flat achievement XP reward"""
    amount = XP_REWARDS["ACHIEVEMENT_UNLOCKED"]
    rewards = update_rewards_with_retry(user_id, _xp_update(amount))
    return {
        "success": True,
        "message": f"Level up! You're now level {rewards['level']}!" if rewards["leveled_up"] else "Achievement XP awarded",
        "amount": amount,
        "rewards": rewards
    }


def get_streak_bonus(previous_streak: int, new_streak: int) -> List[Dict[str, int]]:
    """
    List the streak bonuses crossed when a streak grows

    Args:
        previous_streak: Streak length before the change
        new_streak: Streak length after the change

    Returns:
        List of {"streak": threshold, "xp": bonus} in ascending order
    """
    return [
        {"streak": threshold, "xp": bonus}
        for threshold, bonus in sorted(STREAK_XP_BONUSES.items())
        if previous_streak < threshold <= new_streak
    ]


def award_streak_bonus(user_id: str, previous_streak: int, new_streak: int,
                       streak_start: date) -> Dict[str, Any]:
    """
    Grant bonus XP for every streak threshold crossed upward

    Each threshold pays once per streak, identified by the day it began, so
    breaking and rebuilding the same streak does not pay again.

    Args:
        user_id: The user ID
        previous_streak: Streak length before the change
        new_streak: Streak length after the change
        streak_start: First day of the live streak

    Returns:
        Dict with the bonuses granted and the total XP
    """
    crossed = get_streak_bonus(previous_streak, new_streak)
    if not crossed:
        return {"success": True, "bonuses": [], "amount": 0}

    paid = set(repository.get_streak_bonus_thresholds(user_id, streak_start))
    bonuses = [b for b in crossed if b["streak"] not in paid]
    if not bonuses:
        return {"success": True, "bonuses": [], "amount": 0}

    total = sum(b["xp"] for b in bonuses)
    recorded: List[int] = []
    try:
        for bonus in bonuses:
            repository.create_streak_bonus_award(user_id, streak_start, bonus["streak"], bonus["xp"])
            recorded.append(bonus["streak"])
        rewards = update_rewards_with_retry(user_id, _xp_update(total))
    except SadhanaException:
        logger.error(f"Rolling back streak bonus for user {user_id} (streak from {streak_start})")
        for threshold in recorded:
            repository.delete_streak_bonus_award(user_id, streak_start, threshold)
        raise

    logger.info(f"Streak bonus of {total} XP for user {user_id} ({previous_streak} -> {new_streak} days)")
    return {"success": True, "bonuses": bonuses, "amount": total, "rewards": rewards}


def get_user_xp_info(user_id: str) -> Dict[str, Any]:
    """
    Get a user's current XP, level and progress to the next level

    Returns:
        Dict with xp, level and progress
    """
    rewards = repository.get_rewards(user_id) or {}
    xp = rewards.get("xp") or 0
    return {
        "xp": xp,
        "level": rewards.get("level") or calculate_level(xp),
        "progress": get_level_progress(xp)
    }

"""
Achievement System - Definitions, claims and rewards
"""
from typing import Any, Dict, List, Optional
import logging

from app.core.exceptions import (
    AchievementAlreadyClaimedError,
    AchievementNotFoundError,
    SadhanaException
)
from app.models.rewards import AchievementStats, RewardsUpdate
from . import repository
from .ledger import update_rewards_with_retry

logger = logging.getLogger(__name__)


def _achievement(achievement_id: str, title: str, description: str, category: str,
                 target: int, coin_reward: int, xp_reward: int) -> Dict[str, Any]:
    return {
        "id": achievement_id,
        "title": title,
        "description": description,
        "category": category,
        "target": target,
        "coin_reward": coin_reward,
        "xp_reward": xp_reward
    }


ACHIEVEMENTS: List[Dict[str, Any]] = [
    # Completion
    _achievement("first_step", "First Step", "Complete your first habit", "completion", 1, 10, 25),
    _achievement("early_bird", "Early Bird", "Complete 5 habits", "completion", 5, 15, 25),
    _achievement("getting_started", "Getting Started", "Complete 10 habits", "completion", 10, 20, 25),
    _achievement("consistent", "Consistent", "Complete 25 habits", "completion", 25, 30, 50),
    _achievement("dedicated", "Dedicated", "Complete 50 habits", "completion", 50, 50, 75),
    _achievement("habit_master", "Habit Master", "Complete 100 habits", "completion", 100, 75, 100),
    _achievement("champion", "Champion", "Complete 250 habits", "completion", 250, 100, 150),
    _achievement("legend", "Legend", "Complete 500 habits", "completion", 500, 150, 200),

    # Streak
    _achievement("streak_starter", "Streak Starter", "3 day streak", "streak", 3, 15, 25),
    _achievement("week_warrior", "Week Warrior", "7 day streak", "streak", 7, 25, 50),
    _achievement("two_week_hero", "Two Week Hero", "14 day streak", "streak", 14, 40, 75),
    _achievement("month_master", "Month Master", "30 day streak", "streak", 30, 75, 100),
    _achievement("quarter_champion", "Quarter Champion", "90 day streak", "streak", 90, 150, 200),

    # Perfect days
    _achievement("perfect_start", "Perfect Start", "3 perfect days", "perfect", 3, 20, 25),
    _achievement("perfectionist", "Perfectionist", "10 perfect days", "perfect", 10, 40, 50),
    _achievement("flawless", "Flawless", "25 perfect days", "perfect", 25, 75, 100),
    _achievement("perfect_month", "Perfect Month", "30 perfect days", "perfect", 30, 100, 125),
    _achievement("perfect_master", "Perfect Master", "50 perfect days", "perfect", 50, 150, 200),
]

ACHIEVEMENTS_BY_ID = {a["id"]: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Optional[Dict[str, Any]]:
    return ACHIEVEMENTS_BY_ID.get(achievement_id)


def is_eligible(achievement: Dict[str, Any], stats: AchievementStats) -> bool:
    """Check whether the stats meet an achievement's target"""
    category = achievement["category"]
    if category == "completion":
        value = stats.total_completions
    elif category == "streak":
        value = max(stats.current_streak, stats.longest_streak)
    elif category == "perfect":
        value = stats.perfect_days
    else:
        return False
    return value >= achievement["target"]


def claim_achievement(user_id: str, achievement_id: str) -> Dict[str, Any]:
    """
    Claim an achievement and award its coins + XP

    Args:
        user_id: The user ID
        achievement_id: Achievement definition id

    Returns:
        Dict with success, message, coins_awarded, xp_awarded and rewards

    Raises:
        AchievementNotFoundError: If the id is unknown
        AchievementAlreadyClaimedError: If the user already claimed it
        DatabaseError: If database operation fails
    """
    achievement = get_achievement(achievement_id)
    if not achievement:
        raise AchievementNotFoundError(f"Achievement '{achievement_id}' not found")

    if achievement_id in repository.get_claimed_achievement_ids(user_id):
        raise AchievementAlreadyClaimedError(f"Achievement '{achievement_id}' already claimed")

    repository.create_user_achievement(user_id, achievement_id)

    update = RewardsUpdate(coins_delta=achievement["coin_reward"], xp_delta=achievement["xp_reward"])
    try:
        rewards = update_rewards_with_retry(user_id, update, reason=f"Achievement: {achievement_id}")
    except SadhanaException:
        logger.error(f"Rolling back achievement {achievement_id} for user {user_id}")
        repository.delete_user_achievement(user_id, achievement_id)
        raise

    return {
        "success": True,
        "achievement_id": achievement_id,
        "message": f"Achievement unlocked! +{achievement['coin_reward']} coins, +{achievement['xp_reward']} XP",
        "coins_awarded": achievement["coin_reward"],
        "xp_awarded": achievement["xp_reward"],
        "rewards": rewards
    }


def auto_claim_achievements(user_id: str, stats: AchievementStats) -> List[Dict[str, Any]]:
    """
    Claim every unclaimed achievement the stats qualify for

    Returns:
        List of claim results, one per newly claimed achievement
    """
    claimed_ids = set(repository.get_claimed_achievement_ids(user_id))
    results = []

    for achievement in ACHIEVEMENTS:
        if achievement["id"] in claimed_ids:
            continue
        if not is_eligible(achievement, stats):
            continue

        try:
            results.append(claim_achievement(user_id, achievement["id"]))
        except AchievementAlreadyClaimedError:
            continue

    return results


def list_achievements(user_id: str, stats: Optional[AchievementStats] = None) -> List[Dict[str, Any]]:
    """
    List all achievement definitions with claimed/eligible flags for a user
    """
    claimed_ids = set(repository.get_claimed_achievement_ids(user_id))
    return [
        {
            **achievement,
            "claimed": achievement["id"] in claimed_ids,
            "eligible": is_eligible(achievement, stats) if stats else None
        }
        for achievement in ACHIEVEMENTS
    ]

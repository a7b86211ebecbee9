"""
Rewards Repository - Database access for the reward economy
All Supabase queries for user_rewards, award ledgers, achievements and coin history
"""
from datetime import date
from typing import List, Dict, Any, Optional
import logging

from app.core.constants import DEFAULT_AVATAR, DEFAULT_THEME
from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError
from app.utils.timezone import get_ist_now
from app.utils.pagination import DEFAULT_PAGE_SIZE, fetch_all

logger = logging.getLogger(__name__)


# ============================================================================
# USER_REWARDS TABLE
# ============================================================================

def get_rewards(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Get the rewards row for a user

    Args:
        user_id: The user ID

    Returns:
        Rewards dictionary or None if the user has no row yet

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("user_rewards")\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching rewards for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch rewards: {e}")


def list_rewards_with_streak(page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
    """
    Get the rewards rows of every user with a live streak

    All pages are read before returning, so callers may reset streaks while
    iterating without shifting later pages.

    Raises:
        DatabaseError: If query fails
    """
    try:
        return fetch_all(
            lambda: get_supabase_client().table("user_rewards")
            .select("user_id, current_streak, longest_streak")
            .gt("current_streak", 0)
            .order("user_id"),
            page_size
        )
    except Exception as e:
        logger.error(f"Database error listing rewards: {e}")
        raise DatabaseError(f"Failed to list rewards: {e}")


def list_rewards_summaries(page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
    """
    Get xp, level and streak for every user

    Raises:
        DatabaseError: If query fails
    """
    try:
        return fetch_all(
            lambda: get_supabase_client().table("user_rewards")
            .select("user_id, xp, level, current_streak")
            .order("user_id"),
            page_size
        )
    except Exception as e:
        logger.error(f"Database error listing reward summaries: {e}")
        raise DatabaseError(f"Failed to list rewards: {e}")


def create_rewards(user_id: str) -> Dict[str, Any]:
    """
    Create the default rewards row for a user (version 1)

    Raises:
        DatabaseError: If insert fails
    """
    try:
        rewards_data = {
            "user_id": user_id,
            "coins": 0,
            "gems": 0,
            "xp": 0,
            "level": 1,
            "current_streak": 0,
            "longest_streak": 0,
            "perfect_days": 0,
            "current_theme": DEFAULT_THEME,
            "current_avatar": DEFAULT_AVATAR,
            "unlocked_themes": [DEFAULT_THEME],
            "unlocked_avatars": [DEFAULT_AVATAR],
            "version": 1
        }
        result = get_supabase_client().table("user_rewards").insert(rewards_data).execute()
        return result.data[0] if result.data else rewards_data
    except Exception as e:
        logger.error(f"Database error creating rewards for {user_id}: {e}")
        raise DatabaseError(f"Failed to create rewards: {e}")


def update_rewards_if_version(user_id: str, expected_version: int,
                              update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Compare-and-swap update of a rewards row

    The update only applies while the stored version still equals
    expected_version.

    Args:
        user_id: The user ID
        expected_version: Version read by the caller
        update_data: Columns to write (must include the new version)

    Returns:
        Updated row, or None when the version no longer matched

    Raises:
        DatabaseError: If update fails
    """
    try:
        result = get_supabase_client().table("user_rewards")\
            .update(update_data)\
            .eq("user_id", user_id)\
            .eq("version", expected_version)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error updating rewards for {user_id}: {e}")
        raise DatabaseError(f"Failed to update rewards: {e}")


# ============================================================================
# COIN_TRANSACTIONS TABLE
# ============================================================================

def create_coin_transaction(user_id: str, amount: int, reason: str,
                            balance_after: int) -> Dict[str, Any]:
    """
    Append an entry to the coin history

    Raises:
        DatabaseError: If insert fails
    """
    try:
        result = get_supabase_client().table("coin_transactions").insert({
            "user_id": user_id,
            "amount": amount,
            "reason": reason,
            "balance_after": balance_after,
            "created_at": get_ist_now().isoformat()
        }).execute()
        return result.data[0] if result.data else {}
    except Exception as e:
        logger.error(f"Database error recording coin transaction: {e}")
        raise DatabaseError(f"Failed to record coin transaction: {e}")


# ============================================================================
# XP_AWARDS / COIN_AWARDS TABLES
# ============================================================================

def get_award(table: str, user_id: str, habit_id: str, award_date: date) -> Optional[Dict[str, Any]]:
    """
    Get the per-day award record for a habit

    Args:
        table: 'xp_awards' or 'coin_awards'
        user_id: The user ID
        habit_id: The habit ID
        award_date: The day the habit was completed

    Returns:
        Award row or None

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table(table)\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("habit_id", habit_id)\
            .eq("date", str(award_date))\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching {table} for habit {habit_id} on {award_date}: {e}")
        raise DatabaseError(f"Failed to fetch award: {e}")


def create_award(table: str, amount_column: str, user_id: str, habit_id: str,
                 award_date: date, amount: int) -> Dict[str, Any]:
    """
    Record a per-day award

    Raises:
        DatabaseError: If insert fails
    """
    try:
        result = get_supabase_client().table(table).insert({
            "user_id": user_id,
            "habit_id": habit_id,
            "date": str(award_date),
            amount_column: amount
        }).execute()
        return result.data[0] if result.data else {}
    except Exception as e:
        logger.error(f"Database error recording {table} for habit {habit_id}: {e}")
        raise DatabaseError(f"Failed to record award: {e}")


def delete_award(table: str, user_id: str, habit_id: str, award_date: date) -> None:
    """
    Delete a per-day award

    Raises:
        DatabaseError: If delete fails
    """
    try:
        get_supabase_client().table(table)\
            .delete()\
            .eq("user_id", user_id)\
            .eq("habit_id", habit_id)\
            .eq("date", str(award_date))\
            .execute()
    except Exception as e:
        logger.error(f"Database error deleting {table} for habit {habit_id}: {e}")
        raise DatabaseError(f"Failed to delete award: {e}")


# ============================================================================
# STREAK_BONUS_AWARDS TABLE
# ============================================================================

def get_streak_bonus_thresholds(user_id: str, streak_start: date) -> List[int]:
    """
    Get the bonus thresholds already paid for the streak that began on streak_start

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("streak_bonus_awards")\
            .select("threshold")\
            .eq("user_id", user_id)\
            .eq("streak_start", str(streak_start))\
            .execute()
        return [row["threshold"] for row in result.data]
    except Exception as e:
        logger.error(f"Database error fetching streak bonuses for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch streak bonuses: {e}")


def create_streak_bonus_award(user_id: str, streak_start: date, threshold: int,
                              amount: int) -> Dict[str, Any]:
    """
    Record a paid streak bonus

    Raises:
        DatabaseError: If insert fails
    """
    try:
        result = get_supabase_client().table("streak_bonus_awards").insert({
            "user_id": user_id,
            "streak_start": str(streak_start),
            "threshold": threshold,
            "xp_awarded": amount
        }).execute()
        return result.data[0] if result.data else {}
    except Exception as e:
        logger.error(f"Database error recording streak bonus {threshold} for {user_id}: {e}")
        raise DatabaseError(f"Failed to record streak bonus: {e}")


def delete_streak_bonus_award(user_id: str, streak_start: date, threshold: int) -> None:
    """
    Delete a recorded streak bonus

    Raises:
        DatabaseError: If delete fails
    """
    try:
        get_supabase_client().table("streak_bonus_awards")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("streak_start", str(streak_start))\
            .eq("threshold", threshold)\
            .execute()
    except Exception as e:
        logger.error(f"Database error deleting streak bonus {threshold} for {user_id}: {e}")
        raise DatabaseError(f"Failed to delete streak bonus: {e}")


# ============================================================================
# USER_ACHIEVEMENTS TABLE
# ============================================================================

def get_claimed_achievement_ids(user_id: str) -> List[str]:
    """
    Get ids of all achievements a user has claimed

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("user_achievements")\
            .select("achievement_id")\
            .eq("user_id", user_id)\
            .execute()
        return [row["achievement_id"] for row in result.data]
    except Exception as e:
        logger.error(f"Database error fetching achievements for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch achievements: {e}")


def create_user_achievement(user_id: str, achievement_id: str) -> Dict[str, Any]:
    """
    Record an achievement claim

    Raises:
        DatabaseError: If insert fails
    """
    try:
        result = get_supabase_client().table("user_achievements").insert({
            "user_id": user_id,
            "achievement_id": achievement_id
        }).execute()
        return result.data[0] if result.data else {}
    except Exception as e:
        logger.error(f"Database error recording achievement {achievement_id}: {e}")
        raise DatabaseError(f"Failed to record achievement: {e}")


def delete_user_achievement(user_id: str, achievement_id: str) -> None:
    """
    Remove an achievement claim

    Raises:
        DatabaseError: If delete fails
    """
    try:
        get_supabase_client().table("user_achievements")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("achievement_id", achievement_id)\
            .execute()
    except Exception as e:
        logger.error(f"Database error deleting achievement {achievement_id}: {e}")
        raise DatabaseError(f"Failed to delete achievement: {e}")

"""
Habits Service - Business logic for habit management
Handles habit CRUD, daily completion toggles with reward settlement,
detailed logs and analytics
"""
from datetime import date, timedelta
from typing import Optional, Dict, Any, List
import logging

from app.core.exceptions import (
    DateIntegrityError,
    HabitNotFoundError,
    InvalidHabitDataError,
    InvalidRequestError
)
from app.models.habit import CreateHabitRequest, HabitLogRequest, UpdateHabitRequest
from app.models.rewards import AchievementStats, RewardsUpdate
from app.services.clock import get_verified_today
from app.services.rewards import coins, xp
from app.services.rewards.ledger import get_or_create_rewards, update_rewards_with_retry
from app.utils.timezone import get_ist_now
from . import analytics
from . import repository

logger = logging.getLogger(__name__)

MAX_ANALYTICS_DAYS = 365


def _resolve_date(log_date: Optional[str], today: date) -> date:
    """Parse a requested date and reject anything after the verified today"""
    if log_date is None:
        return today
    try:
        target = date.fromisoformat(log_date)
    except ValueError:
        raise InvalidRequestError(f"Invalid date format '{log_date}'. Use YYYY-MM-DD")
    if target > today:
        raise DateIntegrityError(f"Cannot log habits for a future date ({target.isoformat()})")
    return target


def _require_habit(user_id: str, habit_id: str) -> Dict[str, Any]:
    habit = repository.get_habit(user_id, habit_id)
    if not habit:
        raise HabitNotFoundError(f"Habit {habit_id} not found")
    return habit


# ============================================================================
# HABIT CRUD
# ============================================================================

def create_habit(user_id: str, request: CreateHabitRequest) -> Dict[str, Any]:
    """
    Create a habit for a user

    Args:
        user_id: Owner of the habit
        request: Validated habit fields

    Returns:
        Dict with status, message, and created habit data

    Raises:
        InvalidHabitDataError: If a numeric habit has no target
        DatabaseError: If database operation fails
    """
    if request.type == "numeric" and request.target_value is None:
        raise InvalidHabitDataError("Numeric habits need a target_value")

    habit = repository.create_habit(user_id, request.model_dump())
    logger.info(f"Created habit '{request.name}' for user {user_id}")

    return {
        "status": "success",
        "message": f"Habit '{request.name}' added successfully",
        "data": habit
    }


def update_habit(user_id: str, habit_id: str, request: UpdateHabitRequest) -> Dict[str, Any]:
    """
    Update the provided fields of a habit

    Raises:
        InvalidHabitDataError: If no fields are provided
        HabitNotFoundError: If the user has no such habit
        DatabaseError: If database operation fails
    """
    update_data = request.model_dump(exclude_none=True)
    if not update_data:
        raise InvalidHabitDataError("No fields to update")

    habit = repository.update_habit(user_id, habit_id, update_data)
    if not habit:
        raise HabitNotFoundError(f"Habit {habit_id} not found")

    return {
        "status": "success",
        "message": f"Habit '{habit.get('name')}' updated successfully",
        "data": habit
    }


def delete_habit(user_id: str, habit_id: str) -> Dict[str, Any]:
    """
    Delete a habit

    Raises:
        HabitNotFoundError: If the user has no such habit
        DatabaseError: If database operation fails
    """
    habit = _require_habit(user_id, habit_id)
    if not repository.delete_habit(user_id, habit_id):
        raise HabitNotFoundError(f"Habit {habit_id} not found")

    return {
        "status": "success",
        "message": f"Habit '{habit.get('name')}' removed successfully",
        "habit_id": habit_id
    }


def get_habits_with_status(user_id: str, log_date: Optional[str] = None) -> Dict[str, Any]:
    """
    Get all of a user's habits merged with their log for a day

    Args:
        user_id: The user ID
        log_date: Day to report (YYYY-MM-DD), defaults to the verified today

    Returns:
        Dict with date, habits (each with completed/value/log), and counts
    """
    target = _resolve_date(log_date, get_verified_today())
    habits = repository.get_habits(user_id)
    logs_by_habit = {
        str(log["habit_id"]): log for log in repository.get_logs_for_date(user_id, target)
    }

    result = []
    for habit in habits:
        log = logs_by_habit.get(str(habit["id"]))
        result.append({
            **habit,
            "completed": bool(log and log.get("completed")),
            "value": log.get("value") if log else None,
            "log": log
        })

    active = [h for h in result if h.get("is_active", True)]
    return {
        "date": target.isoformat(),
        "habits": result,
        "completed_count": sum(1 for h in active if h["completed"]),
        "total_count": len(active)
    }


# ============================================================================
# COMPLETION TOGGLE
# ============================================================================

def toggle_completion(user_id: str, habit_id: str, completed: bool,
                      log_date: Optional[str] = None, value: Optional[int] = None) -> Dict[str, Any]:
    """
    Mark a habit complete or incomplete for a day and settle rewards

    Completing awards habit XP and coins (once per habit per day);
    uncompleting takes them back. The streak is recomputed from the logs,
    streak bonuses are granted for thresholds crossed, and perfect_days
    follows the day entering or leaving "all active habits complete".

    Args:
        user_id: The user ID
        habit_id: The habit ID
        completed: New completion state
        log_date: Day to toggle (YYYY-MM-DD), defaults to the verified today
        value: Optional numeric value for numeric habits

    Returns:
        Dict with status, message, log and rewards summary

    Raises:
        HabitNotFoundError: If the user has no such habit
        DateIntegrityError: If the date is after the verified today
        DatabaseError: If database operation fails
    """
    today = get_verified_today()
    target = _resolve_date(log_date, today)
    habit = _require_habit(user_id, habit_id)

    active_ids = [h["id"] for h in repository.get_habits(user_id, active_only=True)]
    was_perfect = analytics.is_perfect_day(active_ids, repository.get_logs_for_date(user_id, target))

    log_data: Dict[str, Any] = {
        "completed": completed,
        "completed_at": get_ist_now().isoformat() if completed else None
    }
    if value is not None:
        log_data["value"] = value
    log = repository.upsert_log(user_id, habit_id, target, log_data)

    is_perfect = analytics.is_perfect_day(active_ids, repository.get_logs_for_date(user_id, target))

    if completed:
        xp_result = xp.award_habit_xp(user_id, habit_id, target)
        coin_result = coins.award_habit_coins(user_id, habit_id, target)
    else:
        xp_result = xp.deduct_habit_xp(user_id, habit_id, target)
        coin_result = coins.deduct_habit_coins(user_id, habit_id, target)

    streak_summary = _settle_streak(user_id, today, was_perfect, is_perfect)

    action = "completed" if completed else "marked incomplete"
    logger.info(f"Habit {habit_id} {action} for user {user_id} on {target.isoformat()}")

    return {
        "status": "success",
        "message": f"Habit '{habit.get('name')}' {action}",
        "log": log,
        "rewards": {
            "xp": xp_result,
            "coins": coin_result,
            **streak_summary
        }
    }


def _settle_streak(user_id: str, today: date, was_perfect: bool, is_perfect: bool) -> Dict[str, Any]:
    """Recompute the streak, adjust perfect_days and grant streak bonuses"""
    rewards = get_or_create_rewards(user_id)
    previous_streak = rewards.get("current_streak") or 0
    run = analytics.current_streak_run(repository.get_completed_dates(user_id), today)
    new_streak = run["length"] if run else 0

    perfect_delta = 0
    if is_perfect and not was_perfect:
        perfect_delta = 1
    elif was_perfect and not is_perfect:
        perfect_delta = -1

    if new_streak != previous_streak or perfect_delta:
        update_rewards_with_retry(
            user_id,
            RewardsUpdate(current_streak=new_streak, perfect_days_delta=perfect_delta)
        )

    bonus = None
    if run and new_streak > previous_streak:
        bonus = xp.award_streak_bonus(user_id, previous_streak, new_streak, run["start"])

    return {
        "streak": {"previous": previous_streak, "current": new_streak},
        "streak_bonus": bonus,
        "perfect_day": is_perfect
    }


# ============================================================================
# LOGS AND ANALYTICS
# ============================================================================

def log_habit(user_id: str, request: HabitLogRequest) -> Dict[str, Any]:
    """
    Save a detailed log entry (notes, focus data) without settling rewards

    Raises:
        HabitNotFoundError: If the user has no such habit
        DateIntegrityError: If the date is after the verified today
        DatabaseError: If database operation fails
    """
    target = _resolve_date(request.date, get_verified_today())
    _require_habit(user_id, request.habit_id)

    log_data = request.model_dump(exclude={"habit_id", "date"}, exclude_none=True)
    if request.completed:
        log_data["completed_at"] = get_ist_now().isoformat()

    log = repository.upsert_log(user_id, request.habit_id, target, log_data)
    return {
        "status": "success",
        "message": "Habit log saved",
        "data": log
    }


def get_logs(user_id: str, start_date: Optional[str] = None, end_date: Optional[str] = None,
             habit_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Get a user's logs in an inclusive date range (default: last 30 days)

    Raises:
        InvalidRequestError: If the dates are malformed or reversed
        DatabaseError: If database operation fails
    """
    try:
        end = date.fromisoformat(end_date) if end_date else get_verified_today()
        start = date.fromisoformat(start_date) if start_date else end - timedelta(days=29)
    except ValueError:
        raise InvalidRequestError("Invalid date format. Use YYYY-MM-DD")

    if start > end:
        raise InvalidRequestError("start_date must be on or before end_date")

    return repository.get_logs(user_id, start, end, habit_id)


def get_analytics(user_id: str, days: int = 30) -> Dict[str, Any]:
    """
    Build the analytics report for the last `days` days

    Raises:
        InvalidRequestError: If days is out of range
        DatabaseError: If database operation fails
    """
    if days < 1 or days > MAX_ANALYTICS_DAYS:
        raise InvalidRequestError(f"days must be between 1 and {MAX_ANALYTICS_DAYS}")

    today = get_verified_today()
    habits = repository.get_habits(user_id)
    # Two periods so trends can compare against the previous one
    logs = repository.get_logs(user_id, today - timedelta(days=2 * days - 1), today)
    completed_dates = repository.get_completed_dates(user_id)

    return analytics.build_analytics(habits, logs, today, days, completed_dates)


def get_achievement_stats(user_id: str) -> AchievementStats:
    """Collect the stats that achievements are judged on"""
    rewards = get_or_create_rewards(user_id)
    return AchievementStats(
        total_completions=repository.count_completed_logs(user_id),
        current_streak=rewards.get("current_streak") or 0,
        longest_streak=rewards.get("longest_streak") or 0,
        perfect_days=rewards.get("perfect_days") or 0
    )

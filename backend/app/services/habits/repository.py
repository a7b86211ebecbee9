"""
Habits Repository - Centralized database access layer
All Supabase queries for habits and habit_logs, always scoped by user
"""
from datetime import date
from typing import List, Dict, Any, Optional
import logging

from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError
from app.utils.timezone import get_ist_now
from app.utils.pagination import fetch_all

logger = logging.getLogger(__name__)

LOG_CONFLICT_COLUMNS = "user_id,habit_id,date"


# ============================================================================
# HABITS TABLE
# ============================================================================

def get_habits(user_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    """
    Get a user's habits

    Args:
        user_id: The user ID
        active_only: Only return habits with is_active set

    Returns:
        List of habit dictionaries ordered by creation time

    Raises:
        DatabaseError: If query fails
    """
    try:
        query = get_supabase_client().table("habits").select("*").eq("user_id", user_id)
        if active_only:
            query = query.eq("is_active", True)
        result = query.order("created_at").execute()
        return result.data
    except Exception as e:
        logger.error(f"Database error fetching habits for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch habits: {e}")


def get_habit(user_id: str, habit_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a single habit owned by a user

    Args:
        user_id: The user ID
        habit_id: The habit ID

    Returns:
        Habit dictionary or None if not found (or owned by someone else)

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("habits")\
            .select("*")\
            .eq("id", habit_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching habit {habit_id}: {e}")
        raise DatabaseError(f"Failed to fetch habit: {e}")


def create_habit(user_id: str, habit_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a new habit

    Args:
        user_id: Owner of the habit
        habit_data: Validated habit fields

    Returns:
        Created habit dictionary

    Raises:
        DatabaseError: If insert fails
    """
    try:
        now = get_ist_now().isoformat()
        row = dict(habit_data, user_id=user_id, created_at=now, updated_at=now)
        result = get_supabase_client().table("habits").insert(row).execute()
        return result.data[0]
    except Exception as e:
        logger.error(f"Database error creating habit: {e}")
        raise DatabaseError(f"Failed to create habit: {e}")


def update_habit(user_id: str, habit_id: str, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Update a habit owned by a user

    Returns:
        Updated habit dictionary or None if no row matched

    Raises:
        DatabaseError: If update fails
    """
    try:
        update_data = dict(update_data, updated_at=get_ist_now().isoformat())
        result = get_supabase_client().table("habits")\
            .update(update_data)\
            .eq("id", habit_id)\
            .eq("user_id", user_id)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error updating habit {habit_id}: {e}")
        raise DatabaseError(f"Failed to update habit: {e}")


def delete_habit(user_id: str, habit_id: str) -> bool:
    """
    Delete a habit owned by a user

    Returns:
        True if a row was deleted

    Raises:
        DatabaseError: If delete fails
    """
    try:
        result = get_supabase_client().table("habits")\
            .delete()\
            .eq("id", habit_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)
    except Exception as e:
        logger.error(f"Database error deleting habit {habit_id}: {e}")
        raise DatabaseError(f"Failed to delete habit: {e}")


# ============================================================================
# HABIT_LOGS TABLE
# ============================================================================

def get_logs(user_id: str, start_date: Optional[date] = None, end_date: Optional[date] = None,
             habit_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Get a user's habit logs, optionally bounded by date (inclusive)

    Raises:
        DatabaseError: If query fails
    """
    def build_query():
        query = get_supabase_client().table("habit_logs").select("*").eq("user_id", user_id)
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())
        if habit_id:
            query = query.eq("habit_id", habit_id)
        return query.order("date").order("id")

    try:
        return fetch_all(build_query)
    except Exception as e:
        logger.error(f"Database error fetching logs for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch habit logs: {e}")


def get_logs_for_date(user_id: str, log_date: date) -> List[Dict[str, Any]]:
    """Get every log a user has for one day"""
    return get_logs(user_id, log_date, log_date)


def get_log(user_id: str, habit_id: str, log_date: date) -> Optional[Dict[str, Any]]:
    """
    Get the log for one habit on one day

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("habit_logs")\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("habit_id", habit_id)\
            .eq("date", log_date.isoformat())\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching log for habit {habit_id} on {log_date}: {e}")
        raise DatabaseError(f"Failed to fetch habit log: {e}")


def upsert_log(user_id: str, habit_id: str, log_date: date, log_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or update the log for (user, habit, date)

    Args:
        user_id: The user ID
        habit_id: The habit ID
        log_date: Day being logged
        log_data: Log fields (completed, value, notes, ...)

    Returns:
        The stored log row

    Raises:
        DatabaseError: If upsert fails
    """
    try:
        row = dict(log_data, user_id=user_id, habit_id=habit_id, date=log_date.isoformat())
        row["updated_at"] = get_ist_now().isoformat()
        result = get_supabase_client().table("habit_logs")\
            .upsert(row, on_conflict=LOG_CONFLICT_COLUMNS)\
            .execute()
        return result.data[0]
    except Exception as e:
        logger.error(f"Database error saving log for habit {habit_id} on {log_date}: {e}")
        raise DatabaseError(f"Failed to save habit log: {e}")


def get_completed_dates(user_id: str, since: Optional[date] = None) -> List[str]:
    """
    Get the distinct dates on which a user completed at least one habit

    Returns:
        Sorted list of YYYY-MM-DD strings

    Raises:
        DatabaseError: If query fails
    """
    def build_query():
        query = get_supabase_client().table("habit_logs")\
            .select("id, date")\
            .eq("user_id", user_id)\
            .eq("completed", True)
        if since:
            query = query.gte("date", since.isoformat())
        return query.order("id")

    try:
        return sorted({row["date"] for row in fetch_all(build_query)})
    except Exception as e:
        logger.error(f"Database error fetching completed dates for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch completed dates: {e}")


def get_users_completed_on(log_date: date) -> List[str]:
    """
    Get the IDs of users with at least one completed log on a day

    Raises:
        DatabaseError: If query fails
    """
    try:
        rows = fetch_all(
            lambda: get_supabase_client().table("habit_logs")
            .select("id, user_id")
            .eq("date", log_date.isoformat())
            .eq("completed", True)
            .order("id")
        )
        return sorted({row["user_id"] for row in rows})
    except Exception as e:
        logger.error(f"Database error fetching completions for {log_date}: {e}")
        raise DatabaseError(f"Failed to fetch completions: {e}")


def count_completed_logs(user_id: str) -> int:
    """Total number of completed logs for a user"""
    try:
        rows = fetch_all(
            lambda: get_supabase_client().table("habit_logs")
            .select("id")
            .eq("user_id", user_id)
            .eq("completed", True)
            .order("id")
        )
        return len(rows)
    except Exception as e:
        logger.error(f"Database error counting completions for {user_id}: {e}")
        raise DatabaseError(f"Failed to count completions: {e}")

"""
Leaderboard Repository - Cross-user reads for rankings
All Supabase queries for profiles and the completion counts behind the leaderboard
"""
from datetime import date
from typing import List, Dict, Any
import logging

from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError
from app.utils.pagination import fetch_all

logger = logging.getLogger(__name__)


def list_visible_profiles() -> List[Dict[str, Any]]:
    """
    Get the profiles that appear on the leaderboard

    show_on_leaderboard defaults to visible, so only an explicit false hides
    a profile.

    Raises:
        DatabaseError: If query fails
    """
    try:
        profiles = fetch_all(
            lambda: get_supabase_client().table("profiles")
            .select("id, username, avatar_url, profile_icon, show_on_leaderboard")
            .order("id")
        )
        return [p for p in profiles if p.get("show_on_leaderboard") is not False]
    except Exception as e:
        logger.error(f"Database error fetching leaderboard profiles: {e}")
        raise DatabaseError(f"Failed to fetch profiles: {e}")


def get_completions_since(since: date) -> List[Dict[str, Any]]:
    """
    Get every completed habit log on or after a date, across all users

    Raises:
        DatabaseError: If query fails
    """
    try:
        return fetch_all(
            lambda: get_supabase_client().table("habit_logs")
            .select("id, user_id, date")
            .eq("completed", True)
            .gte("date", since.isoformat())
            .order("id")
        )
    except Exception as e:
        logger.error(f"Database error fetching completions since {since}: {e}")
        raise DatabaseError(f"Failed to fetch completions: {e}")

"""
Leaderboard Service - Rankings by habit completions

The window covers the last N days including verified today. Users are ranked
by completions in the window, ties broken by total XP.
"""
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Optional
import logging

from app.core.constants import LEADERBOARD_PERIOD_DAYS, LEADERBOARD_SIZE
from app.core.exceptions import InvalidRequestError
from app.services.clock import get_verified_today
from app.services.rewards import repository as rewards_repository
from . import repository

logger = logging.getLogger(__name__)


def rank_entries(profiles: List[Dict[str, Any]], completions: List[Dict[str, Any]],
                 rewards: List[Dict[str, Any]], current_user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Build ranked leaderboard entries

    Args:
        profiles: Visible profiles
        completions: Completed habit logs inside the window
        rewards: Reward summaries (user_id, xp, level, current_streak)
        current_user_id: User to flag with is_current_user

    Returns:
        Entries sorted by completions then XP, ranks starting at 1
    """
    counts: Dict[str, int] = defaultdict(int)
    days: Dict[str, set] = defaultdict(set)
    for log in completions:
        counts[log["user_id"]] += 1
        days[log["user_id"]].add(str(log["date"])[:10])

    rewards_by_user = {r["user_id"]: r for r in rewards}

    entries = []
    for profile in profiles:
        user_id = profile["id"]
        reward = rewards_by_user.get(user_id, {})
        entries.append({
            "user_id": user_id,
            "username": profile.get("username") or "Anonymous",
            "avatar_url": profile.get("avatar_url"),
            "profile_icon": profile.get("profile_icon"),
            "completions": counts.get(user_id, 0),
            "active_days": len(days.get(user_id, ())),
            "xp": reward.get("xp") or 0,
            "level": reward.get("level") or 1,
            "current_streak": reward.get("current_streak") or 0,
            "is_current_user": user_id == current_user_id
        })

    entries.sort(key=lambda e: (-e["completions"], -e["xp"], e["user_id"]))
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank
    return entries


def get_leaderboard(user_id: str, period: str = "weekly") -> Dict[str, Any]:
    """
    Get the leaderboard for a period

    Args:
        user_id: The requesting user
        period: 'weekly' or 'monthly'

    Returns:
        Dict with period, window bounds, the top entries and the caller's own entry

    Raises:
        InvalidRequestError: If the period is unknown
        DatabaseError: If database operation fails
    """
    if period not in LEADERBOARD_PERIOD_DAYS:
        raise InvalidRequestError(f"Unknown leaderboard period '{period}'")

    today = get_verified_today()
    since = today - timedelta(days=LEADERBOARD_PERIOD_DAYS[period] - 1)

    entries = rank_entries(
        repository.list_visible_profiles(),
        repository.get_completions_since(since),
        rewards_repository.list_rewards_summaries(),
        current_user_id=user_id
    )
    current_user = next((e for e in entries if e["is_current_user"]), None)

    logger.debug(f"Leaderboard {period} since {since}: {len(entries)} users")
    return {
        "period": period,
        "start_date": since.isoformat(),
        "end_date": today.isoformat(),
        "entries": entries[:LEADERBOARD_SIZE],
        "current_user": current_user,
        "total_users": len(entries)
    }

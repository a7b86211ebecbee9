"""
Challenges Repository - Database access for weekly challenges
All Supabase queries for weekly_challenges and weekly_challenge_claims
"""
from typing import List, Dict, Any, Optional
import logging

from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


# ============================================================================
# WEEKLY_CHALLENGES TABLE
# ============================================================================

def get_active_challenges() -> List[Dict[str, Any]]:
    """
    Get every active weekly challenge, newest week first

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("weekly_challenges")\
            .select("*")\
            .eq("is_active", True)\
            .order("week_start", desc=True)\
            .execute()
        return result.data
    except Exception as e:
        logger.error(f"Database error fetching weekly challenges: {e}")
        raise DatabaseError(f"Failed to fetch weekly challenges: {e}")


def get_active_challenge(challenge_id: str) -> Optional[Dict[str, Any]]:
    """
    Get one active weekly challenge

    Returns:
        Challenge dictionary or None if missing or inactive

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("weekly_challenges")\
            .select("*")\
            .eq("id", challenge_id)\
            .eq("is_active", True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching weekly challenge {challenge_id}: {e}")
        raise DatabaseError(f"Failed to fetch weekly challenge: {e}")


# ============================================================================
# WEEKLY_CHALLENGE_CLAIMS TABLE
# ============================================================================

def get_claimed_challenge_ids(user_id: str) -> List[str]:
    """
    Get ids of the weekly challenges a user has claimed

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("weekly_challenge_claims")\
            .select("challenge_id")\
            .eq("user_id", user_id)\
            .execute()
        return [row["challenge_id"] for row in result.data]
    except Exception as e:
        logger.error(f"Database error fetching challenge claims for {user_id}: {e}")
        raise DatabaseError(f"Failed to fetch challenge claims: {e}")


def create_claim(user_id: str, challenge: Dict[str, Any], coins: int, xp: int) -> Dict[str, Any]:
    """
    Record a weekly challenge claim

    Raises:
        DatabaseError: If insert fails
    """
    try:
        result = get_supabase_client().table("weekly_challenge_claims").insert({
            "user_id": user_id,
            "challenge_id": challenge["id"],
            "week_start": challenge["week_start"],
            "coins_awarded": coins,
            "xp_awarded": xp
        }).execute()
        return result.data[0] if result.data else {}
    except Exception as e:
        logger.error(f"Database error recording claim of challenge {challenge['id']}: {e}")
        raise DatabaseError(f"Failed to record challenge claim: {e}")


def delete_claim(user_id: str, challenge_id: str) -> None:
    """
    Remove a weekly challenge claim

    Raises:
        DatabaseError: If delete fails
    """
    try:
        get_supabase_client().table("weekly_challenge_claims")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("challenge_id", challenge_id)\
            .execute()
    except Exception as e:
        logger.error(f"Database error deleting claim of challenge {challenge_id}: {e}")
        raise DatabaseError(f"Failed to delete challenge claim: {e}")

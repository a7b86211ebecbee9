"""
Weekly Challenges Service - Progress and reward claims

Progress is computed from the user's habit logs inside the challenge week,
so nothing has to keep a progress table in sync. A claim is recorded before
the coins and XP are credited; if the credit fails the claim is removed.
"""
from datetime import date
from typing import Any, Dict, List, Tuple
import logging

from app.core.constants import XP_REWARDS
from app.core.exceptions import (
    ChallengeAlreadyClaimedError,
    ChallengeNotCompletedError,
    ChallengeNotFoundError,
    SadhanaException
)
from app.models.rewards import RewardsUpdate
from app.services.clock import get_verified_today
from app.services.habits import analytics
from app.services.habits import repository as habits_repository
from app.services.rewards.ledger import update_rewards_with_retry
from . import repository

logger = logging.getLogger(__name__)


def _week_bounds(challenge: Dict[str, Any]) -> Tuple[date, date]:
    return (date.fromisoformat(str(challenge["week_start"])[:10]),
            date.fromisoformat(str(challenge["week_end"])[:10]))


def compute_progress(challenge: Dict[str, Any], logs: List[Dict[str, Any]],
                     active_habit_ids: List[Any], today: date) -> int:
    """
    Measure a challenge's target metric over the elapsed part of its week

    Args:
        challenge: weekly_challenges row
        logs: The user's habit logs (any range; filtered to the week here)
        active_habit_ids: Habits that must all be done for a perfect day
        today: Verified today

    Returns:
        Completions, longest streak or perfect days within the week
    """
    week_start, week_end = _week_bounds(challenge)
    last_day = min(week_end, today)
    week_logs = [
        log for log in logs
        if week_start <= date.fromisoformat(str(log["date"])[:10]) <= last_day
    ]
    completed = [log for log in week_logs if log.get("completed")]

    target_type = challenge.get("target_type")
    if target_type == "completions":
        return len(completed)
    if target_type == "streak":
        streaks = analytics.compute_streaks(log["date"] for log in completed)
        return max((s["length"] for s in streaks), default=0)
    if target_type == "perfect_days":
        return analytics.count_perfect_days(active_habit_ids, week_logs)
    return 0


def _progress_entry(challenge: Dict[str, Any], progress: int, claimed: bool) -> Dict[str, Any]:
    target = challenge.get("target_value") or 0
    percent = min(progress / target * 100, 100) if target else 0.0
    return {
        **challenge,
        "progress": progress,
        "progress_percent": round(percent, 1),
        "completed": bool(target) and progress >= target,
        "claimed": claimed
    }


def list_challenges(user_id: str) -> List[Dict[str, Any]]:
    """
    List active weekly challenges with the user's progress and claim state
    """
    challenges = repository.get_active_challenges()
    if not challenges:
        return []

    today = get_verified_today()
    bounds = [_week_bounds(c) for c in challenges]
    logs = habits_repository.get_logs(
        user_id,
        min(start for start, _ in bounds),
        min(max(end for _, end in bounds), today)
    )
    active_ids = [h["id"] for h in habits_repository.get_habits(user_id, active_only=True)]
    claimed_ids = set(repository.get_claimed_challenge_ids(user_id))

    return [
        _progress_entry(challenge, compute_progress(challenge, logs, active_ids, today),
                        challenge["id"] in claimed_ids)
        for challenge in challenges
    ]


def claim_weekly_challenge(user_id: str, challenge_id: str) -> Dict[str, Any]:
    """
    Claim the coins and XP of a completed weekly challenge

    Args:
        user_id: The user ID
        challenge_id: weekly_challenges id

    Returns:
        Dict with success, message, coins_awarded, xp_awarded and rewards

    Raises:
        ChallengeNotFoundError: If the challenge is missing or inactive
        ChallengeAlreadyClaimedError: If the user already claimed it
        ChallengeNotCompletedError: If the target is not reached yet
        MaxRetriesExceededError: If the ledger kept conflicting
        DatabaseError: If database operation fails
    """
    challenge = repository.get_active_challenge(challenge_id)
    if not challenge:
        raise ChallengeNotFoundError(f"Challenge '{challenge_id}' not found")

    if challenge_id in repository.get_claimed_challenge_ids(user_id):
        raise ChallengeAlreadyClaimedError("Challenge reward already claimed")

    today = get_verified_today()
    week_start, week_end = _week_bounds(challenge)
    logs = habits_repository.get_logs(user_id, week_start, min(week_end, today))
    active_ids = [h["id"] for h in habits_repository.get_habits(user_id, active_only=True)]
    progress = compute_progress(challenge, logs, active_ids, today)
    target = challenge.get("target_value") or 0
    if not target or progress < target:
        raise ChallengeNotCompletedError(f"Challenge not completed yet ({progress}/{target})")

    coins = challenge.get("coin_reward") or 0
    xp = challenge.get("xp_reward")
    if xp is None:
        xp = XP_REWARDS["WEEKLY_CHALLENGE"]

    repository.create_claim(user_id, challenge, coins, xp)
    try:
        rewards = update_rewards_with_retry(
            user_id,
            RewardsUpdate(coins_delta=coins, xp_delta=xp),
            reason=f"Weekly challenge: {challenge.get('title') or challenge_id}"
        )
    except SadhanaException:
        logger.error(f"Rolling back claim of challenge {challenge_id} for user {user_id}")
        repository.delete_claim(user_id, challenge_id)
        raise

    logger.info(f"Weekly challenge {challenge_id} claimed by user {user_id}: +{coins} coins, +{xp} XP")
    return {
        "success": True,
        "challenge_id": challenge_id,
        "message": f"Claimed {coins} coins and {xp} XP!",
        "coins_awarded": coins,
        "xp_awarded": xp,
        "rewards": rewards
    }

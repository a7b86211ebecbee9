"""
Rewards Ledger - Concurrency-safe mutation of coins, XP, level and streaks

Every write to user_rewards goes through apply_rewards_update, which performs a
compare-and-swap on the row's version column. Callers that can race (two
devices completing habits at once, a purchase during a payment credit) wrap
their mutation in with_optimistic_retry so a lost race re-reads the row and
tries again.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from app.core.constants import OPTIMISTIC_LOCK_BACKOFF_SECONDS, OPTIMISTIC_LOCK_MAX_RETRIES
from app.core.exceptions import (
    DatabaseError,
    InsufficientCoinsError,
    InvalidRequestError,
    MaxRetriesExceededError,
    RewardsNotFoundError,
    VersionConflictError
)
from app.models.rewards import RewardsUpdate
from app.utils.timezone import get_ist_now
from . import repository
from .levels import calculate_level

logger = logging.getLogger(__name__)

RESULT_FIELDS = (
    "version", "coins", "xp", "level", "current_streak", "longest_streak",
    "perfect_days", "current_theme", "current_avatar", "unlocked_themes",
    "unlocked_avatars"
)


def get_or_create_rewards(user_id: str) -> Dict[str, Any]:
    """
    Get the rewards row for a user, creating the default row when missing

    Args:
        user_id: The user ID

    Returns:
        Rewards dictionary including its version
    """
    rewards = repository.get_rewards(user_id)
    if rewards is None:
        logger.info(f"Creating rewards row for user {user_id}")
        rewards = repository.create_rewards(user_id)
    return rewards


def _build_update(current: Dict[str, Any], update: RewardsUpdate) -> Dict[str, Any]:
    coins = current.get("coins") or 0
    new_coins = coins + update.coins_delta
    if new_coins < 0:
        raise InsufficientCoinsError(required=-update.coins_delta, available=coins)

    new_xp = max(0, (current.get("xp") or 0) + update.xp_delta)
    new_perfect_days = max(0, (current.get("perfect_days") or 0) + update.perfect_days_delta)

    current_streak = current.get("current_streak") or 0
    if update.current_streak is not None:
        current_streak = update.current_streak
    longest_streak = update.longest_streak
    if longest_streak is None:
        longest_streak = current.get("longest_streak") or 0
    longest_streak = max(longest_streak, current_streak)

    payload = {
        "coins": new_coins,
        "xp": new_xp,
        "level": calculate_level(new_xp),
        "perfect_days": new_perfect_days,
        "current_streak": current_streak,
        "longest_streak": longest_streak,
        "version": current["version"] + 1,
        "updated_at": get_ist_now().isoformat()
    }
    for field in ("current_theme", "current_avatar", "unlocked_themes", "unlocked_avatars"):
        value = getattr(update, field)
        if value is not None:
            payload[field] = value

    return payload


def apply_rewards_update(user_id: str, expected_version: int, update: RewardsUpdate,
                         reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Apply a rewards update if the row is still at expected_version

    Args:
        user_id: The user ID
        expected_version: Version the caller read before computing the update
        update: Deltas and replacements to apply
        reason: Optional reason recorded in the coin history for coin changes

    Returns:
        Dict with success, the new row values, previous_level and leveled_up

    Raises:
        RewardsNotFoundError: If the user has no rewards row
        VersionConflictError: If another writer changed the row first
        InsufficientCoinsError: If the update would make coins negative
        DatabaseError: If database operation fails
    """
    current = repository.get_rewards(user_id)
    if current is None:
        raise RewardsNotFoundError(f"Rewards not found for user {user_id}")

    if current["version"] != expected_version:
        raise VersionConflictError(expected_version, current["version"])

    payload = _build_update(current, update)

    updated = repository.update_rewards_if_version(user_id, expected_version, payload)
    if updated is None:
        latest = repository.get_rewards(user_id)
        raise VersionConflictError(expected_version, latest["version"] if latest else None)

    # The swap is committed; a history failure must not look like a failed update
    if update.coins_delta and reason:
        try:
            repository.create_coin_transaction(user_id, update.coins_delta, reason, updated["coins"])
        except DatabaseError as e:
            logger.error(f"Coin history not recorded for user {user_id} ({reason}): {e}")

    previous_level = current.get("level") or calculate_level(current.get("xp") or 0)
    result = {"success": True}
    result.update({field: updated.get(field) for field in RESULT_FIELDS})
    result["previous_level"] = previous_level
    result["leveled_up"] = result["level"] > previous_level
    return result


def with_optimistic_retry(operation: Callable[[Dict[str, Any]], Dict[str, Any]],
                          user_id: str,
                          max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """
    Run a rewards mutation, retrying when another writer wins the race

    Args:
        operation: Callable receiving the freshly read rewards row
        user_id: The user ID
        max_retries: Total attempts before giving up

    Returns:
        The operation's result

    Raises:
        MaxRetriesExceededError: If every attempt hit a version conflict
    """
    attempts = 0

    while attempts < max_retries:
        attempts += 1
        rewards = get_or_create_rewards(user_id)

        try:
            return operation(rewards)
        except VersionConflictError as e:
            if attempts < max_retries:
                logger.info(f"Optimistic locking retry {attempts}/{max_retries} for user {user_id}: {e}")
                time.sleep(OPTIMISTIC_LOCK_BACKOFF_SECONDS * attempts)
                continue

    logger.warning(f"Optimistic locking gave up after {max_retries} attempts for user {user_id}")
    raise MaxRetriesExceededError(
        "Operation failed after multiple attempts due to concurrent updates. Please try again."
    )


# ============================================================================
# RETRYING HELPERS
# ============================================================================

def update_rewards_with_retry(user_id: str, update: RewardsUpdate,
                              reason: Optional[str] = None,
                              max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """Apply a fixed update with automatic retry on version conflicts"""
    return with_optimistic_retry(
        lambda rewards: apply_rewards_update(user_id, rewards["version"], update, reason),
        user_id,
        max_retries
    )


def add_coins_with_retry(user_id: str, amount: int, reason: Optional[str] = None,
                         max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """Add coins with automatic retry on version conflicts"""
    return update_rewards_with_retry(user_id, RewardsUpdate(coins_delta=amount), reason, max_retries)


def spend_coins_with_retry(user_id: str, amount: int, reason: Optional[str] = None,
                           max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """
    Spend coins with a balance check and automatic retry on version conflicts

    Raises:
        InvalidRequestError: If amount is not positive
        InsufficientCoinsError: If the balance is too low
    """
    if amount <= 0:
        raise InvalidRequestError("Spend amount must be positive")
    return update_rewards_with_retry(user_id, RewardsUpdate(coins_delta=-amount), reason, max_retries)


def update_xp_with_retry(user_id: str, xp_change: int,
                         max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """Change XP (level follows) with automatic retry on version conflicts"""
    return update_rewards_with_retry(user_id, RewardsUpdate(xp_delta=xp_change), None, max_retries)


def update_streaks_with_retry(user_id: str, current_streak: int,
                              longest_streak: Optional[int] = None,
                              max_retries: int = OPTIMISTIC_LOCK_MAX_RETRIES) -> Dict[str, Any]:
    """Set the current streak; longest defaults to max(stored longest, current)"""
    def operation(rewards: Dict[str, Any]) -> Dict[str, Any]:
        longest = longest_streak
        if longest is None:
            longest = max(rewards.get("longest_streak") or 0, current_streak)
        update = RewardsUpdate(current_streak=current_streak, longest_streak=longest)
        return apply_rewards_update(user_id, rewards["version"], update)

    return with_optimistic_retry(operation, user_id, max_retries)


def update_profile_cosmetics(user_id: str, current_theme: Optional[str] = None,
                             current_avatar: Optional[str] = None) -> Dict[str, Any]:
    """
    Switch the active theme and/or avatar to already unlocked ones

    Raises:
        InvalidRequestError: If nothing is provided or the item is locked
    """
    if current_theme is None and current_avatar is None:
        raise InvalidRequestError("Must provide current_theme or current_avatar")

    def operation(rewards: Dict[str, Any]) -> Dict[str, Any]:
        _ensure_unlocked(current_theme, rewards.get("unlocked_themes"), "Theme")
        _ensure_unlocked(current_avatar, rewards.get("unlocked_avatars"), "Avatar")
        update = RewardsUpdate(current_theme=current_theme, current_avatar=current_avatar)
        return apply_rewards_update(user_id, rewards["version"], update)

    return with_optimistic_retry(operation, user_id)


def _ensure_unlocked(item: Optional[str], unlocked: Optional[List[str]], label: str) -> None:
    if item is not None and item not in (unlocked or []):
        raise InvalidRequestError(f"{label} '{item}' is not unlocked")

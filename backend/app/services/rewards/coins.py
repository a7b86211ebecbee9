"""
Coin System

Earning Rules:
- +1 coin per habit completed (once per day per habit)
- the coin is taken back if the habit is uncompleted
- +5 coins per achievement unlocked
- Coins can be purchased via Razorpay (see payments)
"""
from datetime import date
from typing import Any, Dict

from app.core.constants import COIN_REWARDS
from app.models.rewards import RewardsUpdate
from . import repository
from .awards import grant_habit_award, revoke_habit_award
from .ledger import add_coins_with_retry


def _coin_update(amount: int) -> RewardsUpdate:
    return RewardsUpdate(coins_delta=amount)


def award_habit_coins(user_id: str, habit_id: str, award_date: date) -> Dict[str, Any]:
    """Award coins for completing a habit (once per habit per day)"""
    return grant_habit_award(
        "coin_awards", "coins_awarded", user_id, habit_id, award_date,
        COIN_REWARDS["HABIT_COMPLETED"], _coin_update, "coins"
    )


def deduct_habit_coins(user_id: str, habit_id: str, award_date: date) -> Dict[str, Any]:
    """Take back the coins awarded for a habit on a day"""
    return revoke_habit_award(
        "coin_awards", "coins_awarded", user_id, habit_id, award_date,
        _coin_update, "coins", "coins"
    )


def check_coins_awarded(user_id: str, habit_id: str, award_date: date) -> bool:
    """Check if coins were already awarded for a habit on a day"""
    return repository.get_award("coin_awards", user_id, habit_id, award_date) is not None


def reward_achievement_unlock(user_id: str) -> Dict[str, Any]:
    """Grant the flat achievement coin reward"""
    amount = COIN_REWARDS["ACHIEVEMENT_UNLOCKED"]
    rewards = add_coins_with_retry(user_id, amount, reason="Achievement unlocked")
    return {
        "success": True,
        "message": "Achievement coins awarded",
        "amount": amount,
        "rewards": rewards
    }

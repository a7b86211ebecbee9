"""
Per-habit, per-day awards

A habit completion earns XP and coins at most once per (user, habit, date).
The award row is written before the ledger is credited so a duplicate
request finds it; if the credit fails the row is removed again.
"""
from datetime import date
from typing import Any, Callable, Dict
import logging

from app.core.exceptions import SadhanaException
from app.models.rewards import RewardsUpdate
from . import repository
from .ledger import apply_rewards_update, update_rewards_with_retry, with_optimistic_retry

logger = logging.getLogger(__name__)


def _sentence(label: str) -> str:
    return label[:1].upper() + label[1:]


def grant_habit_award(table: str, amount_column: str, user_id: str, habit_id: str,
                      award_date: date, amount: int,
                      make_update: Callable[[int], RewardsUpdate],
                      label: str) -> Dict[str, Any]:
    """
    Grant a once-per-day habit award

    Args:
        table: Award ledger table ('xp_awards' or 'coin_awards')
        amount_column: Column holding the awarded amount
        user_id: The user ID
        habit_id: The habit ID
        award_date: Completion date
        amount: Amount to award
        make_update: Builds the RewardsUpdate for a signed amount
        label: "XP" or "coins", used in messages

    Returns:
        Dict with success, message, amount and the ledger result
    """
    if repository.get_award(table, user_id, habit_id, award_date):
        return {
            "success": False,
            "message": f"{_sentence(label)} already awarded for this habit today",
            "amount": 0
        }

    repository.create_award(table, amount_column, user_id, habit_id, award_date, amount)

    try:
        result = update_rewards_with_retry(user_id, make_update(amount), reason=f"Habit completed: {habit_id}")
    except SadhanaException:
        logger.error(f"Rolling back {table} for habit {habit_id} on {award_date}")
        repository.delete_award(table, user_id, habit_id, award_date)
        raise

    return {
        "success": True,
        "message": f"{_sentence(label)} awarded successfully",
        "amount": amount,
        "rewards": result
    }


def revoke_habit_award(table: str, amount_column: str, user_id: str, habit_id: str,
                       award_date: date,
                       make_update: Callable[[int], RewardsUpdate],
                       balance_field: str, label: str) -> Dict[str, Any]:
    """
    Reverse a habit award when the habit is uncompleted

    The deduction never takes the balance below zero.

    Returns:
        Dict with success, message, amount (negative) and the ledger result
    """
    award = repository.get_award(table, user_id, habit_id, award_date)
    if not award:
        return {"success": True, "message": f"No {label} to deduct", "amount": 0}

    awarded = award.get(amount_column) or 0
    deducted = {"amount": 0}

    def operation(rewards: Dict[str, Any]) -> Dict[str, Any]:
        deduction = min(awarded, rewards.get(balance_field) or 0)
        deducted["amount"] = deduction
        return apply_rewards_update(
            user_id, rewards["version"], make_update(-deduction),
            reason=f"Habit uncompleted: {habit_id}"
        )

    result = with_optimistic_retry(operation, user_id)

    try:
        repository.delete_award(table, user_id, habit_id, award_date)
    except SadhanaException:
        logger.error(f"Restoring {label} after failed award removal for habit {habit_id}")
        update_rewards_with_retry(user_id, make_update(deducted["amount"]))
        raise

    return {
        "success": True,
        "message": f"{_sentence(label)} deducted successfully",
        "amount": -deducted["amount"],
        "rewards": result
    }

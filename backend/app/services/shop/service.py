"""
Shop Service - Spend coins on themes, avatars and other plans
"""
import re
from typing import Any, Dict, Optional
import logging

from app.core.constants import DEFAULT_AVATAR, DEFAULT_THEME
from app.core.exceptions import ItemAlreadyOwnedError, PlanNotFoundError, SadhanaException
from app.models.rewards import RewardsUpdate
from app.services.rewards.ledger import apply_rewards_update, with_optimistic_retry
from . import coupons
from . import repository

logger = logging.getLogger(__name__)


def theme_slug(name: str) -> str:
    """Theme identifier for a plan name, e.g. 'Ocean Blue' -> 'ocean-blue'"""
    return re.sub(r"\s+", "-", name.lower())


def avatar_slug(plan: Dict[str, Any]) -> str:
    return plan.get("icon") or plan["name"].lower()


def build_unlock(plan: Dict[str, Any], rewards: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rewards fields to set when a plan is bought

    Raises:
        ItemAlreadyOwnedError: If the theme or avatar is already unlocked
    """
    plan_type = plan.get("plan_type")

    if plan_type == "theme":
        slug = theme_slug(plan["name"])
        unlocked = list(rewards.get("unlocked_themes") or [DEFAULT_THEME])
        if slug in unlocked:
            raise ItemAlreadyOwnedError(f"Theme '{plan['name']}' is already unlocked")
        return {"unlocked_themes": unlocked + [slug], "current_theme": slug}

    if plan_type == "avatar":
        slug = avatar_slug(plan)
        unlocked = list(rewards.get("unlocked_avatars") or [DEFAULT_AVATAR])
        if slug in unlocked:
            raise ItemAlreadyOwnedError(f"Avatar '{plan['name']}' is already unlocked")
        return {"unlocked_avatars": unlocked + [slug], "current_avatar": slug}

    return {}


def purchase_plan(user_id: str, plan_id: str, coupon_code: Optional[str] = None) -> Dict[str, Any]:
    """
    Buy a shop plan with coins

    The coin spend and the unlock are one optimistic-locked update, so a
    purchase either fully happens or leaves the rewards row untouched.

    Args:
        user_id: The buyer
        plan_id: Plan to buy
        coupon_code: Optional coupon code

    Returns:
        Dict with success, message, final_price, coupon_discount and rewards

    Raises:
        PlanNotFoundError: If the plan is missing or inactive
        InvalidCouponError: If the coupon cannot be applied
        ItemAlreadyOwnedError: If the item is already unlocked
        InsufficientCoinsError: If the user cannot afford the final price
        MaxRetriesExceededError: If concurrent updates kept winning
        DatabaseError: If database operation fails
    """
    plan = repository.get_active_plan(plan_id)
    if not plan:
        raise PlanNotFoundError("Plan not found")

    price = plan.get("coin_price") or 0
    final_price = price
    discount = 0
    coupon = None

    if coupon_code:
        validation = coupons.validate_coupon(coupon_code, price)
        coupon = validation["coupon"]
        discount = validation["discount"]
        final_price = validation["final_amount"]

    def operation(rewards: Dict[str, Any]) -> Dict[str, Any]:
        update = RewardsUpdate(coins_delta=-final_price, **build_unlock(plan, rewards))
        return apply_rewards_update(
            user_id, rewards["version"], update, reason=f"Purchase: {plan['name']}"
        )

    rewards = with_optimistic_retry(operation, user_id)

    try:
        repository.create_purchase(
            user_id, plan_id, price, discount, final_price, coupon["id"] if coupon else None
        )
        if coupon:
            repository.increment_coupon_use(coupon)
    except SadhanaException as e:
        # Coins are already spent; the unlock stands even if bookkeeping fails
        logger.error(f"Purchase of {plan_id} by {user_id} succeeded but was not recorded: {e}")

    logger.info(f"User {user_id} purchased plan {plan_id} for {final_price} coins")

    return {
        "success": True,
        "message": f"{plan['name']} purchased successfully!",
        "final_price": final_price,
        "coupon_discount": discount,
        "rewards": rewards
    }

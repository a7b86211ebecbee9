"""
Shop Repository - Database access for plans, coupons and purchases
"""
from typing import Dict, Any, Optional
import logging

from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError
from app.utils.timezone import get_ist_now

logger = logging.getLogger(__name__)


# ============================================================================
# SHOP_PLANS TABLE
# ============================================================================

def get_active_plan(plan_id: str) -> Optional[Dict[str, Any]]:
    """
    Get an active shop plan

    Args:
        plan_id: The plan ID

    Returns:
        Plan dictionary or None if missing or inactive

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("shop_plans")\
            .select("*")\
            .eq("id", plan_id)\
            .eq("is_active", True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching plan {plan_id}: {e}")
        raise DatabaseError(f"Failed to fetch plan: {e}")


# ============================================================================
# COUPONS TABLE
# ============================================================================

def get_coupon_by_code(code: str) -> Optional[Dict[str, Any]]:
    """
    Get a coupon by its code (codes are stored upper-case)

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("coupons")\
            .select("*")\
            .eq("code", code.strip().upper())\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching coupon {code}: {e}")
        raise DatabaseError(f"Failed to fetch coupon: {e}")


def increment_coupon_use(coupon: Dict[str, Any]) -> None:
    """
    Record one use of a coupon

    Raises:
        DatabaseError: If update fails
    """
    try:
        get_supabase_client().table("coupons")\
            .update({"used_count": (coupon.get("used_count") or 0) + 1})\
            .eq("id", coupon["id"])\
            .execute()
    except Exception as e:
        logger.error(f"Database error recording use of coupon {coupon.get('id')}: {e}")
        raise DatabaseError(f"Failed to update coupon: {e}")


# ============================================================================
# PURCHASES TABLE
# ============================================================================

def create_purchase(user_id: str, plan_id: str, original_price: int, coupon_discount: int,
                    final_price: int, coupon_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Record a completed purchase

    Raises:
        DatabaseError: If insert fails
    """
    try:
        purchase_data = {
            "user_id": user_id,
            "plan_id": plan_id,
            "coupon_id": coupon_id,
            "original_price": original_price,
            "coupon_discount": coupon_discount,
            "final_price": final_price,
            "coins_spent": final_price,
            "created_at": get_ist_now().isoformat()
        }
        result = get_supabase_client().table("purchases").insert(purchase_data).execute()
        return result.data[0]
    except Exception as e:
        logger.error(f"Database error recording purchase of {plan_id}: {e}")
        raise DatabaseError(f"Failed to record purchase: {e}")

"""
Coupon validation for coin purchases
"""
import math
from typing import Any, Dict

from app.core.exceptions import InvalidCouponError
from app.utils.timezone import get_ist_now, parse_timestamp, to_ist
from . import repository


def calculate_discount(coupon: Dict[str, Any], price: int) -> int:
    """
    Discount a coupon gives on a price, never more than the price

    Percentage discounts round down to whole coins.
    """
    value = coupon.get("discount_value") or 0
    if coupon.get("discount_type") == "percentage":
        discount = math.floor(price * value / 100)
    else:
        discount = int(value)
    return max(0, min(discount, price))


def check_coupon(coupon: Dict[str, Any], purchase_amount: int) -> None:
    """
    Raise InvalidCouponError if the coupon cannot be used for this amount
    """
    if not coupon.get("is_active"):
        raise InvalidCouponError("Coupon is not active")

    expires_at = coupon.get("expires_at")
    if expires_at and to_ist(parse_timestamp(expires_at)) <= get_ist_now():
        raise InvalidCouponError("Coupon has expired")

    max_uses = coupon.get("max_uses")
    if max_uses is not None and (coupon.get("used_count") or 0) >= max_uses:
        raise InvalidCouponError("Coupon usage limit reached")

    min_purchase = coupon.get("min_purchase") or 0
    if purchase_amount < min_purchase:
        raise InvalidCouponError(f"Minimum purchase of {min_purchase} coins required for this coupon")


def validate_coupon(code: str, purchase_amount: int) -> Dict[str, Any]:
    """
    Validate a coupon code against a purchase amount

    Args:
        code: Coupon code as entered by the user
        purchase_amount: Price in coins before discount

    Returns:
        Dict with valid, coupon, discount and final_amount

    Raises:
        InvalidCouponError: If the code is unknown or not usable
        DatabaseError: If database operation fails
    """
    coupon = repository.get_coupon_by_code(code)
    if not coupon:
        raise InvalidCouponError("Invalid coupon code")

    check_coupon(coupon, purchase_amount)
    discount = calculate_discount(coupon, purchase_amount)

    return {
        "valid": True,
        "coupon": coupon,
        "discount": discount,
        "final_amount": purchase_amount - discount
    }

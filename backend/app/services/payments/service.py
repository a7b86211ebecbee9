"""
Payments Service - Buy coins through Razorpay

Flow:
1. create_order: the client asks for an order, Razorpay returns its id
2. the client completes checkout and receives a payment id + signature
3. verify_payment: the signature is checked, the payment recorded and the
   coins credited through the rewards ledger
"""
from datetime import timedelta
from typing import Any, Dict, Optional
import logging

from app.core.config import settings
from app.core.constants import MAX_COINS_PER_PAYMENT
from app.core.exceptions import (
    OrderNotFoundError,
    PaymentAlreadyProcessedError,
    PaymentVerificationError
)
from app.models.shop import CreateOrderRequest, PaymentVerificationRequest
from app.services.external import razorpay
from app.services.rewards.ledger import add_coins_with_retry
from app.utils.timezone import get_ist_now
from . import repository

logger = logging.getLogger(__name__)


def create_order(user: Dict[str, Any], request: CreateOrderRequest) -> Dict[str, Any]:
    """
    Create a Razorpay order for a coin package

    Args:
        user: Authenticated user ({"id", "email"})
        request: Amount (paise), currency, receipt and notes

    Returns:
        Dict with success, order (id, amount, currency, receipt) and key_id

    Raises:
        ExternalServiceError: If Razorpay is unavailable or rejects the order
        DatabaseError: If the order cannot be stored
    """
    notes = {"user_id": user["id"], "user_email": user.get("email")}
    notes.update(request.notes or {})

    order = razorpay.create_order(round(request.amount), request.currency, request.receipt, notes)
    repository.create_order_record(user["id"], order)

    return {
        "success": True,
        "order": {
            "id": order["id"],
            "amount": order.get("amount"),
            "currency": order.get("currency"),
            "receipt": order.get("receipt")
        },
        "key_id": settings.RAZORPAY_KEY_ID
    }


def _note_int(notes: Dict[str, Any], key: str) -> Optional[int]:
    value = notes.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_coin_amounts(order: Dict[str, Any], request: PaymentVerificationRequest) -> Dict[str, int]:
    """
    Coins and bonus to credit for an order

    Amounts recorded in the order's notes when it was created win over the
    amounts the client sends at verification time.
    """
    notes = order.get("notes") or {}
    coins = _note_int(notes, "coins")
    bonus = _note_int(notes, "bonus")

    coins = request.coins if coins is None else coins
    bonus = request.bonus if bonus is None else bonus

    if coins <= 0 or coins > MAX_COINS_PER_PAYMENT or bonus < 0:
        raise PaymentVerificationError("Invalid coin amount")
    return {"coins": coins, "bonus": bonus}


def verify_payment(user: Dict[str, Any], request: PaymentVerificationRequest) -> Dict[str, Any]:
    """
    Verify a completed payment and credit the purchased coins

    Args:
        user: Authenticated user ({"id", "email"})
        request: Razorpay ids, signature and the coin package

    Returns:
        Dict with success, message, coins_added and new_balance

    Raises:
        PaymentVerificationError: If the signature is invalid
        OrderNotFoundError: If the order does not exist for this user
        PaymentAlreadyProcessedError: If the payment was already credited
        DatabaseError: If database operation fails
    """
    order_id = request.razorpay_order_id
    payment_id = request.razorpay_payment_id

    if not razorpay.verify_signature(order_id, payment_id, request.razorpay_signature):
        logger.warning(f"[PAYMENT] Invalid signature for order {order_id} from user {user['id']}")
        raise PaymentVerificationError("Invalid payment signature")

    order = repository.get_order(user["id"], order_id)
    if not order:
        raise OrderNotFoundError("Order not found")

    if repository.get_transaction(payment_id):
        raise PaymentAlreadyProcessedError("Payment already processed")

    amounts = resolve_coin_amounts(order, request)
    total_coins = amounts["coins"] + amounts["bonus"]

    repository.create_transaction({
        "payment_id": payment_id,
        "order_id": order_id,
        "user_id": user["id"],
        "amount": order.get("amount"),
        "currency": order.get("currency"),
        "status": "completed",
        "package_id": request.package_id,
        "coins_purchased": amounts["coins"],
        "bonus_coins": amounts["bonus"]
    })
    repository.mark_order_paid(order_id, payment_id)

    rewards = add_coins_with_retry(user["id"], total_coins, reason=f"Payment: {payment_id}")
    logger.info(f"[PAYMENT] Credited {total_coins} coins to user {user['id']} for payment {payment_id}")

    return {
        "success": True,
        "message": "Payment verified successfully",
        "coins_added": total_coins,
        "new_balance": rewards["coins"]
    }


def expire_stale_orders(hours: int = settings.ORDER_EXPIRY_HOURS) -> int:
    """
    Expire orders that were never paid within the window

    Returns:
        Number of orders expired
    """
    cutoff = get_ist_now() - timedelta(hours=hours)
    expired = repository.expire_orders_created_before(cutoff)
    if expired:
        logger.info(f"[PAYMENT] Expired {expired} unpaid orders older than {hours}h")
    return expired

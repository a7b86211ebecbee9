"""
Payments Repository - Database access for Razorpay orders and transactions
"""
from datetime import datetime
from typing import Dict, Any, Optional
import logging

from app.core.dependencies import get_supabase_client
from app.core.exceptions import DatabaseError
from app.utils.timezone import get_ist_now

logger = logging.getLogger(__name__)

ORDER_CREATED = "created"
ORDER_PAID = "paid"
ORDER_EXPIRED = "expired"


# ============================================================================
# PAYMENT_ORDERS TABLE
# ============================================================================

def create_order_record(user_id: str, order: Dict[str, Any]) -> Dict[str, Any]:
    """
    Store a Razorpay order so the payment can be verified later

    Args:
        user_id: The paying user
        order: Order object returned by Razorpay

    Raises:
        DatabaseError: If insert fails
    """
    try:
        order_data = {
            "order_id": order["id"],
            "user_id": user_id,
            "amount": order.get("amount"),
            "currency": order.get("currency"),
            "receipt": order.get("receipt"),
            "status": ORDER_CREATED,
            "notes": order.get("notes") or {},
            "created_at": get_ist_now().isoformat()
        }
        result = get_supabase_client().table("payment_orders").insert(order_data).execute()
        return result.data[0]
    except Exception as e:
        logger.error(f"Database error storing order {order.get('id')}: {e}")
        raise DatabaseError(f"Failed to store order: {e}")


def get_order(user_id: str, order_id: str) -> Optional[Dict[str, Any]]:
    """
    Get an order that belongs to a user

    Returns:
        Order dictionary or None

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("payment_orders")\
            .select("*")\
            .eq("order_id", order_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching order {order_id}: {e}")
        raise DatabaseError(f"Failed to fetch order: {e}")


def mark_order_paid(order_id: str, payment_id: str) -> None:
    """
    Raises:
        DatabaseError: If update fails
    """
    try:
        get_supabase_client().table("payment_orders")\
            .update({
                "status": ORDER_PAID,
                "payment_id": payment_id,
                "updated_at": get_ist_now().isoformat()
            })\
            .eq("order_id", order_id)\
            .execute()
    except Exception as e:
        logger.error(f"Database error marking order {order_id} paid: {e}")
        raise DatabaseError(f"Failed to update order: {e}")


def expire_orders_created_before(cutoff: datetime) -> int:
    """
    Mark unpaid orders created before cutoff as expired

    Returns:
        Number of orders expired

    Raises:
        DatabaseError: If update fails
    """
    try:
        result = get_supabase_client().table("payment_orders")\
            .update({"status": ORDER_EXPIRED, "updated_at": get_ist_now().isoformat()})\
            .eq("status", ORDER_CREATED)\
            .lt("created_at", cutoff.isoformat())\
            .execute()
        return len(result.data)
    except Exception as e:
        logger.error(f"Database error expiring orders: {e}")
        raise DatabaseError(f"Failed to expire orders: {e}")


# ============================================================================
# PAYMENT_TRANSACTIONS TABLE
# ============================================================================

def get_transaction(payment_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a recorded transaction by Razorpay payment id

    Raises:
        DatabaseError: If query fails
    """
    try:
        result = get_supabase_client().table("payment_transactions")\
            .select("*")\
            .eq("payment_id", payment_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Database error fetching transaction {payment_id}: {e}")
        raise DatabaseError(f"Failed to fetch transaction: {e}")


def create_transaction(transaction_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Raises:
        DatabaseError: If insert fails
    """
    try:
        transaction_data = dict(transaction_data, created_at=get_ist_now().isoformat())
        result = get_supabase_client().table("payment_transactions").insert(transaction_data).execute()
        return result.data[0]
    except Exception as e:
        logger.error(f"Database error recording transaction {transaction_data.get('payment_id')}: {e}")
        raise DatabaseError(f"Failed to record transaction: {e}")

"""
Razorpay Service - Orders API client and signature verification
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests

from app.core.config import settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def is_razorpay_configured() -> bool:
    """Check if Razorpay credentials are configured"""
    return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)


def create_order(amount: int, currency: str, receipt: str,
                 notes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create an order with the Razorpay Orders API

    Args:
        amount: Amount in the currency's smallest unit (paise)
        currency: ISO currency code
        receipt: Merchant receipt id
        notes: Key/value notes stored on the order

    Returns:
        Razorpay order object

    Raises:
        ExternalServiceError: If credentials are missing or Razorpay rejects the order
    """
    if not is_razorpay_configured():
        raise ExternalServiceError("Razorpay credentials not configured")

    try:
        response = requests.post(
            f"{settings.RAZORPAY_API_BASE}/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {}
            },
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            timeout=10
        )
    except requests.RequestException as e:
        logger.error(f"[RAZORPAY] Order request failed: {e}")
        raise ExternalServiceError(f"Failed to reach Razorpay: {e}")

    try:
        order = response.json()
    except ValueError:
        order = {}

    if not response.ok:
        description = (order.get("error") or {}).get("description") or "Failed to create order"
        logger.error(f"[RAZORPAY] Order creation failed ({response.status_code}): {description}")
        raise ExternalServiceError(description)

    logger.info(f"[RAZORPAY] Order created: {order.get('id')}")
    return order


def compute_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """HMAC-SHA256 hex digest of "<order_id>|<payment_id>" """
    key = (secret if secret is not None else settings.RAZORPAY_KEY_SECRET).encode()
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str,
                     secret: Optional[str] = None) -> bool:
    """
    Verify the checkout signature Razorpay returns for a payment

    Returns:
        True if the signature matches
    """
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode(), signature.encode())

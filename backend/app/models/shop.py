"""
Pydantic models for shop purchases and Razorpay payments
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from app.core.constants import MAX_COINS_PER_PAYMENT


class PurchaseRequest(BaseModel):
    """Request model for buying a shop plan with coins"""
    plan_id: str = Field(..., min_length=1, alias="planId")
    coupon_code: Optional[str] = Field(None, max_length=50, alias="couponCode")

    model_config = {"populate_by_name": True}


class CreateOrderRequest(BaseModel):
    """Request model for creating a Razorpay order"""
    amount: float = Field(..., gt=0, description="Amount in paise")
    currency: str = Field("INR", min_length=3, max_length=3)
    receipt: str = Field(..., min_length=1, max_length=40)
    notes: Optional[Dict[str, Any]] = None


class PaymentVerificationRequest(BaseModel):
    """Request model for verifying a completed Razorpay payment"""
    razorpay_order_id: str = Field(..., min_length=1, max_length=100)
    razorpay_payment_id: str = Field(..., min_length=1, max_length=100)
    razorpay_signature: str = Field(..., min_length=1, max_length=200)
    coins: int = Field(..., gt=0, le=MAX_COINS_PER_PAYMENT)
    bonus: int = Field(0, ge=0, le=MAX_COINS_PER_PAYMENT)
    package_id: Optional[str] = None

"""
Payment Routes - Razorpay order creation and verification
Both endpoints are also served at their legacy top-level paths
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.config import settings
from app.core.dependencies import get_current_user
from app.core.exceptions import (
    DatabaseError,
    ExternalServiceError,
    MaxRetriesExceededError,
    OrderNotFoundError,
    PaymentAlreadyProcessedError,
    PaymentVerificationError
)
from app.core.rate_limit import PAYMENT_LIMIT, limiter
from app.models.shop import CreateOrderRequest, PaymentVerificationRequest
from app.services import payments as payment_service

router = APIRouter(tags=["payments"])


def _require_payments_enabled():
    if not settings.FEATURE_PAYMENTS:
        raise HTTPException(status_code=503, detail="Payments are currently disabled")


@router.post("/razorpay/create-order")
@router.post("/create-order")
@limiter.limit(PAYMENT_LIMIT)
async def create_order(request: Request, payload: CreateOrderRequest,
                       user: Dict[str, Any] = Depends(get_current_user)):
    """Create a Razorpay order for a coin package"""
    _require_payments_enabled()
    try:
        return payment_service.create_order(user, payload)
    except ExternalServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/razorpay/verify-payment")
@router.post("/verify-payment")
@limiter.limit(PAYMENT_LIMIT)
async def verify_payment(request: Request, payload: PaymentVerificationRequest,
                         user: Dict[str, Any] = Depends(get_current_user)):
    """Verify a completed payment and credit the coins"""
    _require_payments_enabled()
    try:
        return payment_service.verify_payment(user, payload)
    except (PaymentVerificationError, PaymentAlreadyProcessedError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))

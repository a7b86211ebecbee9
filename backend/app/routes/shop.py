"""
Shop Routes - Spend coins on plans
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import (
    DatabaseError,
    InsufficientCoinsError,
    InvalidCouponError,
    ItemAlreadyOwnedError,
    MaxRetriesExceededError,
    PlanNotFoundError
)
from app.core.rate_limit import PAYMENT_LIMIT, limiter
from app.models.shop import PurchaseRequest
from app.services import shop as shop_service

router = APIRouter(prefix="/shop", tags=["shop"])


@router.post("/purchase")
@limiter.limit(PAYMENT_LIMIT)
async def purchase(request: Request, payload: PurchaseRequest,
                   user: Dict[str, Any] = Depends(get_current_user)):
    """Buy a plan with coins, optionally with a coupon"""
    try:
        return shop_service.purchase_plan(user["id"], payload.plan_id, payload.coupon_code)
    except PlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidCouponError, InsufficientCoinsError, ItemAlreadyOwnedError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DatabaseError:
        raise HTTPException(status_code=500, detail="Purchase failed")

"""
Rewards Routes - Coins, XP, level and cosmetics
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import DatabaseError, InvalidRequestError, MaxRetriesExceededError
from app.core.rate_limit import limiter
from app.models.rewards import CosmeticsRequest
from app.services import rewards as rewards_service
from app.services.rewards import xp

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("")
async def get_rewards(user: Dict[str, Any] = Depends(get_current_user)):
    """Get the user's rewards row (created on first access)"""
    try:
        return rewards_service.get_or_create_rewards(user["id"])
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/level")
async def get_level(user: Dict[str, Any] = Depends(get_current_user)):
    """Get XP, level and progress to the next level"""
    try:
        return xp.get_user_xp_info(user["id"])
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/cosmetics")
@limiter.limit("30/minute")
async def update_cosmetics(request: Request, payload: CosmeticsRequest,
                           user: Dict[str, Any] = Depends(get_current_user)):
    """Switch the active theme and/or avatar"""
    try:
        return rewards_service.update_profile_cosmetics(
            user["id"], payload.current_theme, payload.current_avatar
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))

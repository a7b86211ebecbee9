"""
Achievement Routes - Listing and claiming achievements
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import (
    AchievementAlreadyClaimedError,
    AchievementNotFoundError,
    DatabaseError,
    MaxRetriesExceededError,
    SadhanaException
)
from app.core.rate_limit import limiter
from app.services import habits as habit_service
from app.services.rewards import achievements as achievement_service

router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("")
async def list_achievements(user: Dict[str, Any] = Depends(get_current_user)):
    """All achievements with claimed/eligible flags for the user"""
    try:
        stats = habit_service.get_achievement_stats(user["id"])
        return {
            "stats": stats.model_dump(),
            "achievements": achievement_service.list_achievements(user["id"], stats)
        }
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/auto-claim")
@limiter.limit("10/minute")
async def auto_claim(request: Request, user: Dict[str, Any] = Depends(get_current_user)):
    """Claim every achievement the user currently qualifies for"""
    try:
        stats = habit_service.get_achievement_stats(user["id"])
        claimed = achievement_service.auto_claim_achievements(user["id"], stats)
        return {"success": True, "claimed": claimed, "count": len(claimed)}
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SadhanaException as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{achievement_id}/claim")
@limiter.limit("10/minute")
async def claim(request: Request, achievement_id: str,
                user: Dict[str, Any] = Depends(get_current_user)):
    """Claim one achievement"""
    try:
        stats = habit_service.get_achievement_stats(user["id"])
        achievement = achievement_service.get_achievement(achievement_id)
        if achievement and not achievement_service.is_eligible(achievement, stats):
            raise HTTPException(status_code=400, detail="Achievement requirements not met")
        return achievement_service.claim_achievement(user["id"], achievement_id)
    except AchievementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AchievementAlreadyClaimedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SadhanaException as e:
        raise HTTPException(status_code=500, detail=str(e))

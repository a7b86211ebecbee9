"""
Leaderboard Routes
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import DatabaseError, InvalidRequestError
from app.core.rate_limit import ANALYTICS_LIMIT, limiter
from app.services import leaderboard as leaderboard_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("")
@limiter.limit(ANALYTICS_LIMIT)
async def get_leaderboard(request: Request, period: str = "weekly",
                          user: Dict[str, Any] = Depends(get_current_user)):
    """Rankings for the weekly or monthly window"""
    try:
        return leaderboard_service.get_leaderboard(user["id"], period)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))

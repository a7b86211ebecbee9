"""
Challenge Routes - Weekly challenge progress and claims
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import (
    ChallengeAlreadyClaimedError,
    ChallengeNotCompletedError,
    ChallengeNotFoundError,
    DatabaseError,
    MaxRetriesExceededError,
    SadhanaException
)
from app.core.rate_limit import limiter
from app.services import challenges as challenge_service

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("")
async def list_challenges(user: Dict[str, Any] = Depends(get_current_user)):
    """Active weekly challenges with the user's progress"""
    try:
        return {"challenges": challenge_service.list_challenges(user["id"])}
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{challenge_id}/claim")
@limiter.limit("10/minute")
async def claim(request: Request, challenge_id: str,
                user: Dict[str, Any] = Depends(get_current_user)):
    """Claim the reward of a completed weekly challenge"""
    try:
        return challenge_service.claim_weekly_challenge(user["id"], challenge_id)
    except ChallengeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChallengeAlreadyClaimedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ChallengeNotCompletedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SadhanaException as e:
        raise HTTPException(status_code=500, detail=str(e))

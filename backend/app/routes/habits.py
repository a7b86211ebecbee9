"""
Habit Routes - Endpoints for habit management, completion and analytics
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.core.dependencies import get_current_user
from app.core.exceptions import (
    DatabaseError,
    DateIntegrityError,
    HabitNotFoundError,
    InsufficientCoinsError,
    InvalidRequestError,
    MaxRetriesExceededError,
    SadhanaException
)
from app.core.rate_limit import ANALYTICS_LIMIT, HABITS_LIMIT, limiter
from app.models.habit import (
    CreateHabitRequest,
    HabitLogRequest,
    ToggleCompletionRequest,
    UpdateHabitRequest
)
from app.services import habits as habit_service

router = APIRouter(prefix="/habits", tags=["habits"])


@router.get("")
@limiter.limit(HABITS_LIMIT)
async def list_habits(request: Request, date: Optional[str] = None,
                      user: Dict[str, Any] = Depends(get_current_user)):
    """Get all habits with their completion status for a day (default today)"""
    try:
        return habit_service.get_habits_with_status(user["id"], date)
    except (InvalidRequestError, DateIntegrityError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
@limiter.limit(HABITS_LIMIT)
async def create_habit(request: Request, payload: CreateHabitRequest,
                       user: Dict[str, Any] = Depends(get_current_user)):
    """Create a new habit"""
    try:
        return habit_service.create_habit(user["id"], payload)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/logs")
@limiter.limit(HABITS_LIMIT)
async def get_logs(request: Request, start_date: Optional[str] = None, end_date: Optional[str] = None,
                   habit_id: Optional[str] = None,
                   user: Dict[str, Any] = Depends(get_current_user)):
    """Get habit logs in a date range (default last 30 days)"""
    try:
        return {"logs": habit_service.get_logs(user["id"], start_date, end_date, habit_id)}
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/logs")
@limiter.limit(HABITS_LIMIT)
async def log_habit(request: Request, payload: HabitLogRequest,
                    user: Dict[str, Any] = Depends(get_current_user)):
    """Save a detailed log entry (notes, focus data)"""
    try:
        return habit_service.log_habit(user["id"], payload)
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidRequestError, DateIntegrityError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/analytics")
@limiter.limit(ANALYTICS_LIMIT)
async def get_analytics(request: Request, days: int = Query(30, ge=1, le=365),
                        user: Dict[str, Any] = Depends(get_current_user)):
    """Completion analytics for the last N days"""
    try:
        return habit_service.get_analytics(user["id"], days)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{habit_id}")
@limiter.limit(HABITS_LIMIT)
async def update_habit(request: Request, habit_id: str, payload: UpdateHabitRequest,
                       user: Dict[str, Any] = Depends(get_current_user)):
    """Update a habit's fields"""
    try:
        return habit_service.update_habit(user["id"], habit_id, payload)
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{habit_id}")
@limiter.limit(HABITS_LIMIT)
async def delete_habit(request: Request, habit_id: str,
                       user: Dict[str, Any] = Depends(get_current_user)):
    """Delete a habit"""
    try:
        return habit_service.delete_habit(user["id"], habit_id)
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{habit_id}/toggle")
@limiter.limit(HABITS_LIMIT)
async def toggle_completion(request: Request, habit_id: str, payload: ToggleCompletionRequest,
                            user: Dict[str, Any] = Depends(get_current_user)):
    """Mark a habit complete/incomplete for a day and settle XP, coins and streak"""
    try:
        return habit_service.toggle_completion(
            user["id"], habit_id, payload.completed, payload.date, payload.value
        )
    except HabitNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidRequestError, DateIntegrityError, InsufficientCoinsError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MaxRetriesExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SadhanaException as e:
        raise HTTPException(status_code=500, detail=str(e))

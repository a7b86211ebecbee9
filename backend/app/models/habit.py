"""
Pydantic models for habits and habit logs
"""
from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional


HabitCategory = Literal["morning", "work", "night", "health", "focus"]
HabitType = Literal["boolean", "numeric"]


def _validate_date_string(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    try:
        date.fromisoformat(v)
        return v
    except ValueError:
        raise ValueError(f"Invalid date format '{v}'. Use YYYY-MM-DD")


class CreateHabitRequest(BaseModel):
    """Request model for creating a habit"""
    name: str = Field(..., min_length=1, max_length=100, description="Habit name")
    description: Optional[str] = Field(None, max_length=500)
    emoji: Optional[str] = Field(None, max_length=10)
    category: Optional[HabitCategory] = None
    type: HabitType = "boolean"
    target_value: Optional[int] = Field(None, gt=0, le=10000)
    target_unit: Optional[str] = Field(None, max_length=50)
    is_active: bool = True


class UpdateHabitRequest(BaseModel):
    """Request model for a partial habit update"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    emoji: Optional[str] = Field(None, max_length=10)
    category: Optional[HabitCategory] = None
    type: Optional[HabitType] = None
    target_value: Optional[int] = Field(None, gt=0, le=10000)
    target_unit: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class ToggleCompletionRequest(BaseModel):
    """Request model for toggling a habit's completion on a date"""
    completed: bool = Field(..., description="New completion state")
    date: Optional[str] = Field(None, description="Date in YYYY-MM-DD (defaults to today, IST)")
    value: Optional[int] = Field(None, ge=0, le=100000)

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v: Optional[str]) -> Optional[str]:
        """Validate date format is YYYY-MM-DD if provided"""
        return _validate_date_string(v)


class HabitLogRequest(BaseModel):
    """Request model for a detailed habit log entry"""
    habit_id: str = Field(..., min_length=1)
    date: str = Field(..., description="Date in YYYY-MM-DD")
    completed: bool = False
    value: Optional[int] = Field(None, ge=0, le=100000)
    notes: Optional[str] = Field(None, max_length=1000)
    duration_minutes: Optional[int] = Field(None, ge=0, le=1440)
    focus_score: Optional[int] = Field(None, ge=1, le=10)
    interruptions: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Validate date format is YYYY-MM-DD"""
        return _validate_date_string(v)

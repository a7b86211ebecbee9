"""
Pydantic models for the rewards ledger and achievements
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class RewardsUpdate(BaseModel):
    """
    A single change to a user's rewards row

    Deltas are added to the stored values; the remaining fields replace
    stored values when set.
    """
    coins_delta: int = 0
    xp_delta: int = 0
    perfect_days_delta: int = 0
    current_streak: Optional[int] = Field(None, ge=0)
    longest_streak: Optional[int] = Field(None, ge=0)
    current_theme: Optional[str] = None
    current_avatar: Optional[str] = None
    unlocked_themes: Optional[List[str]] = None
    unlocked_avatars: Optional[List[str]] = None


class CosmeticsRequest(BaseModel):
    """Request model for switching the active theme or avatar"""
    current_theme: Optional[str] = Field(None, min_length=1, max_length=50)
    current_avatar: Optional[str] = Field(None, min_length=1, max_length=50)


class AchievementStats(BaseModel):
    """Stats used to decide achievement eligibility"""
    total_completions: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    perfect_days: int = Field(0, ge=0)

"""
Pydantic models for the application
"""
from app.models.habit import (
    CreateHabitRequest,
    UpdateHabitRequest,
    ToggleCompletionRequest,
    HabitLogRequest
)
from app.models.rewards import RewardsUpdate, CosmeticsRequest, AchievementStats
from app.models.shop import PurchaseRequest, CreateOrderRequest, PaymentVerificationRequest
from app.models.clock import ClockCheckRequest

__all__ = [
    "CreateHabitRequest",
    "UpdateHabitRequest",
    "ToggleCompletionRequest",
    "HabitLogRequest",
    "RewardsUpdate",
    "CosmeticsRequest",
    "AchievementStats",
    "PurchaseRequest",
    "CreateOrderRequest",
    "PaymentVerificationRequest",
    "ClockCheckRequest"
]

"""
Custom Exceptions - Application-specific error types
"""
from typing import Optional


class SadhanaException(Exception):
    """Base exception for all Sadhana errors"""
    pass


class HabitNotFoundError(SadhanaException):
    """Raised when a habit cannot be found for the user"""
    pass


class InvalidRequestError(SadhanaException):
    """Raised when request data fails a business rule"""
    pass


class InvalidHabitDataError(InvalidRequestError):
    """Raised when habit data validation fails"""
    pass


class DatabaseError(SadhanaException):
    """Raised when database operations fail"""
    pass


class ExternalServiceError(SadhanaException):
    """Raised when external services (Razorpay, time APIs, Supabase Auth) fail"""
    pass


# ============================================================================
# REWARDS
# ============================================================================

class RewardsNotFoundError(SadhanaException):
    """Raised when a user has no rewards row"""
    pass


class VersionConflictError(SadhanaException):
    """Raised when the rewards row changed since it was read"""

    def __init__(self, expected_version: int, current_version: Optional[int] = None):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Rewards version mismatch: expected {expected_version}, found {current_version}"
        )


class InsufficientCoinsError(SadhanaException):
    """Raised when a spend would take the coin balance below zero"""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient coins. You need {required - available} more coins."
        )


class MaxRetriesExceededError(SadhanaException):
    """Raised when optimistic locking keeps conflicting"""
    pass


class AchievementNotFoundError(SadhanaException):
    """Raised when an achievement id is unknown"""
    pass


class AchievementAlreadyClaimedError(SadhanaException):
    """Raised when an achievement was already claimed"""
    pass


# ============================================================================
# WEEKLY CHALLENGES
# ============================================================================

class ChallengeNotFoundError(SadhanaException):
    """Raised when a weekly challenge is missing or inactive"""
    pass


class ChallengeNotCompletedError(SadhanaException):
    """Raised when claiming a challenge whose target is not reached"""
    pass


class ChallengeAlreadyClaimedError(SadhanaException):
    """Raised when a weekly challenge reward was already claimed"""
    pass


# ============================================================================
# SHOP / PAYMENTS
# ============================================================================

class PlanNotFoundError(SadhanaException):
    """Raised when a shop plan is missing or inactive"""
    pass


class ItemAlreadyOwnedError(SadhanaException):
    """Raised when purchasing a theme or avatar that is already unlocked"""
    pass


class InvalidCouponError(SadhanaException):
    """Raised when a coupon cannot be applied"""
    pass


class PaymentVerificationError(SadhanaException):
    """Raised when payment input or signature is invalid"""
    pass


class OrderNotFoundError(SadhanaException):
    """Raised when a payment order does not exist for the user"""
    pass


class PaymentAlreadyProcessedError(SadhanaException):
    """Raised when a payment id has already been credited"""
    pass


# ============================================================================
# DATES
# ============================================================================

class DateIntegrityError(SadhanaException):
    """Raised when a date is not acceptable against the verified server date"""
    pass

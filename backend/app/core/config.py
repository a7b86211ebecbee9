"""
Application configuration and environment variables
"""
import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if not value:
        return default
    return value.lower() == "true" or value == "1"


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Settings:
    """Application settings loaded from environment variables"""

    # App
    APP_NAME: str = os.getenv("APP_NAME", "Sadhana")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Payments / Razorpay
    RAZORPAY_KEY_ID: str = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET: str = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_API_BASE: str = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1")
    ORDER_EXPIRY_HOURS: int = _get_int("ORDER_EXPIRY_HOURS", 24)

    # Rate limiting (slowapi format)
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")
    RATE_LIMIT_PAYMENT: str = os.getenv("RATE_LIMIT_PAYMENT", "10/minute")
    RATE_LIMIT_HABITS: str = os.getenv("RATE_LIMIT_HABITS", "100/minute")
    RATE_LIMIT_ANALYTICS: str = os.getenv("RATE_LIMIT_ANALYTICS", "20/minute")

    # Feature flags
    FEATURE_PAYMENTS: bool = _get_bool("FEATURE_PAYMENTS", True)
    MAINTENANCE_MODE: bool = _get_bool("MAINTENANCE_MODE", False)
    SCHEDULER_ENABLED: bool = _get_bool("SCHEDULER_ENABLED", True)

    # Date verification
    TIME_VERIFICATION_CACHE_SECONDS: int = _get_int("TIME_VERIFICATION_CACHE_SECONDS", 60)
    TIME_API_TIMEOUT_SECONDS: int = _get_int("TIME_API_TIMEOUT_SECONDS", 3)
    TIME_API_RETRY_SECONDS: int = _get_int("TIME_API_RETRY_SECONDS", 30)
    MAX_CLOCK_DRIFT_SECONDS: int = _get_int("MAX_CLOCK_DRIFT_SECONDS", 300)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


def validate_config(config: Settings) -> List[str]:
    """
    Check for required configuration

    Returns:
        List of error messages, empty when configuration is complete
    """
    errors = []
    if not config.SUPABASE_URL:
        errors.append("SUPABASE_URL is required")
    if not config.SUPABASE_KEY:
        errors.append("SUPABASE_KEY is required")

    if config.FEATURE_PAYMENTS:
        if not config.RAZORPAY_KEY_ID:
            errors.append("RAZORPAY_KEY_ID is required for payments")
        if not config.RAZORPAY_KEY_SECRET:
            errors.append("RAZORPAY_KEY_SECRET is required for payments")

    return errors


# Create a global settings instance
settings = Settings()

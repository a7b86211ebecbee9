"""
Rate limiting - shared slowapi limiter and per-area limits
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT])

PAYMENT_LIMIT = settings.RATE_LIMIT_PAYMENT
HABITS_LIMIT = settings.RATE_LIMIT_HABITS
ANALYTICS_LIMIT = settings.RATE_LIMIT_ANALYTICS
